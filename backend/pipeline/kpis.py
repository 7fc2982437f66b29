"""Community KPI aggregation.

KPIs describe the whole community, so ``project`` aggregates the unfiltered
dataset. ``KpiScope.FILTERED`` exists for callers that explicitly want the
filtered view instead.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import StrEnum

from core.categories import effective_capacity
from core.models import (
    Battery,
    Building,
    ChargePoint,
    Entity,
    EntityCategory,
    SolarArray,
    entity_category,
)


class KpiScope(StrEnum):
    COMMUNITY = "community"
    FILTERED = "filtered"


@dataclass
class CommunityKpis:
    total_entities: int = 0
    counts: dict[str, int] = field(default_factory=lambda: {c.value: 0 for c in EntityCategory})
    total_pv_capacity: float = 0.0  # kW
    total_pv_production: float = 0.0  # kWh/year
    total_battery_capacity: float = 0.0  # kWh
    total_energy_demand: float = 0.0  # kWh/year
    total_embodied_co2: float = 0.0  # kgCO2e
    v2g_charge_points: int = 0
    distinct_owners: int = 0


def aggregate_kpis(entities: Iterable[Entity]) -> CommunityKpis:
    kpis = CommunityKpis()
    owners: set[str] = set()

    for entity in entities:
        kpis.total_entities += 1
        kpis.counts[entity_category(entity).value] += 1
        if entity.owner:
            owners.add(entity.owner)

        match entity:
            case SolarArray():
                kpis.total_pv_capacity += effective_capacity(entity)
                kpis.total_pv_production += entity.annual_production or 0.0
                kpis.total_embodied_co2 += entity.total_embodied_co2 or 0.0
            case Battery():
                kpis.total_battery_capacity += effective_capacity(entity)
                kpis.total_embodied_co2 += entity.total_embodied_co2 or 0.0
            case Building():
                kpis.total_energy_demand += entity.total_energy_demand or 0.0
            case ChargePoint():
                if entity.is_v2g:
                    kpis.v2g_charge_points += 1
            case _:
                pass

    kpis.distinct_owners = len(owners)
    return kpis
