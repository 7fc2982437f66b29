"""Detail panel content for the selected entity.

The panel itself lives on the client; this builds the data it shows.
"""

from dataclasses import dataclass

from core.categories import traits_for
from core.models import (
    Battery,
    Building,
    ChargePoint,
    Connection,
    Entity,
    SolarArray,
    display_name,
)
from pipeline.flows import FlowHistory, entity_flow_history


@dataclass(frozen=True)
class PanelAttribute:
    label: str
    value: str


@dataclass(frozen=True)
class DetailPanelContent:
    entity_id: str
    title: str
    type_label: str
    color: str
    attributes: list[PanelAttribute]
    history: FlowHistory


def _fmt(value: float | None, unit: str) -> str | None:
    if value is None:
        return None
    return f"{value:,.2f} {unit}"


def panel_attributes(entity: Entity) -> list[PanelAttribute]:
    rows: list[tuple[str, str | None]] = []
    match entity:
        case Building():
            rows = [
                ("Building Type", entity.building_type),
                ("Area", _fmt(entity.area, "m²")),
                ("Owner", entity.owner),
                ("Energy Demand", _fmt(entity.total_energy_demand, "kWh")),
                ("PV Capacity", _fmt(entity.total_pv_capacity, "kW")),
            ]
        case SolarArray():
            rows = [
                ("Capacity", _fmt(entity.installed_capacity, "kW")),
                ("Annual Production", _fmt(entity.annual_production, "kWh")),
                ("Total Cost", _fmt(entity.extra.get("total_cost"), "SEK")),
                ("Embodied CO₂", _fmt(entity.total_embodied_co2, "kgCO₂e")),
            ]
        case Battery():
            rows = [
                ("Capacity", _fmt(entity.capacity, "kWh")),
                ("Cost", _fmt(entity.total_cost, "SEK")),
                ("Embodied CO₂", _fmt(entity.total_embodied_co2, "kgCO₂e")),
            ]
        case ChargePoint():
            rows = [
                ("Capacity", _fmt(entity.capacity, "kW")),
                ("V2G Enabled", "Yes" if entity.is_v2g else "No"),
                ("Connected EVs", None if entity.total_connected_evs is None else str(entity.total_connected_evs)),
                ("Owner", entity.owner),
            ]
    attributes = [PanelAttribute(label, value) for label, value in rows if value is not None]
    attributes.append(PanelAttribute("ID", entity.id))
    return attributes


def detail_panel(entity: Entity, connections: list[Connection]) -> DetailPanelContent:
    """Panel content for ``entity``; history is taken over the full connection list."""
    traits = traits_for(entity)
    return DetailPanelContent(
        entity_id=entity.id,
        title=display_name(entity),
        type_label=traits.type_label(entity),
        color=traits.color,
        attributes=panel_attributes(entity),
        history=entity_flow_history(entity.id, connections),
    )
