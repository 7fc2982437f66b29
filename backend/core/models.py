"""Core data models for the energy community graph."""

import math
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

HOURS_IN_WINDOW = 48


class EntityCategory(StrEnum):
    BUILDING = "building"
    SOLAR = "solar"
    GRID = "grid"
    BATTERY = "battery"
    CHARGE_POINT = "charge_point"


class V2GFilter(StrEnum):
    """Tri-state vehicle-to-grid filter applied to charge points only."""

    ANY = "any"
    ONLY = "only"
    EXCLUDE = "exclude"


# ---------------------------------------------------------------------------
# Entity variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Building:
    id: str
    name: str | None = None
    owner: str | None = None
    area: float | None = None  # m²
    total_energy_demand: float | None = None  # kWh/year
    total_pv_capacity: float | None = None  # kW
    building_type: str | None = None
    capacity: float | None = None
    extra: dict[str, Any] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class SolarArray:
    id: str
    name: str | None = None
    owner: str | None = None
    installed_capacity: float | None = None  # kW
    capacity: float | None = None
    annual_production: float | None = None  # kWh/year
    total_embodied_co2: float | None = None  # kgCO2e
    extra: dict[str, Any] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class GridConnection:
    id: str
    name: str | None = None
    owner: str | None = None
    capacity: float | None = None
    extra: dict[str, Any] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class Battery:
    id: str
    name: str | None = None
    owner: str | None = None
    capacity: float | None = None  # kWh
    installed_capacity: float | None = None
    total_cost: float | None = None  # SEK
    total_embodied_co2: float | None = None  # kgCO2e
    extra: dict[str, Any] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class ChargePoint:
    id: str
    name: str | None = None
    owner: str | None = None
    capacity: float | None = None  # kW
    is_v2g: bool = False
    total_connected_evs: int | None = None
    extra: dict[str, Any] = field(default_factory=dict, compare=False)


type Entity = Building | SolarArray | GridConnection | Battery | ChargePoint


def entity_category(entity: Entity) -> EntityCategory:
    """Category tag of an entity variant."""
    match entity:
        case Building():
            return EntityCategory.BUILDING
        case SolarArray():
            return EntityCategory.SOLAR
        case GridConnection():
            return EntityCategory.GRID
        case Battery():
            return EntityCategory.BATTERY
        case ChargePoint():
            return EntityCategory.CHARGE_POINT


def display_name(entity: Entity) -> str:
    return entity.name or entity.id


def numeric_attribute(entity: Entity, name: str) -> float | None:
    """Read a numeric attribute from the typed fields, falling back to ``extra``."""
    value = getattr(entity, name, None)
    if value is None:
        value = entity.extra.get(name)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return float(value)


# ---------------------------------------------------------------------------
# Connections
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Connection:
    """Directed relationship carrying one signed flow value (kWh) per hour.

    Positive values flow source -> target, negative values target -> source.
    """

    source: str
    target: str
    flow: Any = field(default_factory=list)

    @property
    def key(self) -> tuple[str, str]:
        return (self.source, self.target)

    def flow_at(self, hour: int) -> float:
        """Signed flow at ``hour``; malformed data or out-of-range hours read as zero."""
        if not isinstance(self.flow, (list, tuple)):
            return 0.0
        if hour < 0 or hour >= len(self.flow):
            return 0.0
        value = self.flow[hour]
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            return 0.0
        return float(value)

    def magnitude_at(self, hour: int) -> float:
        return abs(self.flow_at(hour))

    def series(self, hours: int = HOURS_IN_WINDOW) -> list[float]:
        """Full hourly series with malformed entries replaced by zero."""
        return [self.flow_at(h) for h in range(hours)]

    def touches(self, entity_id: str) -> bool:
        return self.source == entity_id or self.target == entity_id


# ---------------------------------------------------------------------------
# Dataset and filters
# ---------------------------------------------------------------------------


@dataclass
class CommunityDataset:
    entities: list[Entity]
    connections: list[Connection]
    community_kpis: dict[str, Any] | None = None  # pre-aggregated, passed through untouched
    valid_owners: list[str] = field(default_factory=list)

    _by_id: dict[str, Entity] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        self._by_id = {e.id: e for e in self.entities}

    def entity(self, entity_id: str) -> Entity | None:
        return self._by_id.get(entity_id)

    def owners(self) -> list[str]:
        """Distinct owners across entity owner fields and the declared owner catalogue."""
        owners = {e.owner for e in self.entities if e.owner}
        owners.update(self.valid_owners)
        return sorted(owners)


@dataclass(frozen=True)
class FilterCriteria:
    categories: frozenset[EntityCategory] = frozenset(EntityCategory)
    owners: frozenset[str] = frozenset()  # empty = no restriction
    v2g: V2GFilter = V2GFilter.ANY
    capacity_min: float = 0.0
    capacity_max: float = 1000.0
    min_flow: float = 0.0

