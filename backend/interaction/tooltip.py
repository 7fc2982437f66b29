"""Tooltip content fragments for entities and connections."""

from html import escape

from core.categories import traits_for
from core.models import (
    Battery,
    Building,
    ChargePoint,
    Connection,
    Entity,
    GridConnection,
    SolarArray,
    display_name,
)


def _line(label: str, value: str) -> str:
    return f"<br/>{escape(label)}: {escape(value)}"


def entity_tooltip(entity: Entity, detailed: bool = True) -> str:
    """Name and type, plus category attributes when ``detailed``."""
    content = f'<div class="font-semibold">{escape(display_name(entity))}</div>'
    content += f"<div>Type: {escape(traits_for(entity).label)}</div>"
    if not detailed:
        return content

    match entity:
        case Building():
            if entity.total_energy_demand is not None:
                content += _line("Energy Demand", f"{entity.total_energy_demand:.2f} kWh/year")
            if entity.total_pv_capacity:
                content += _line("PV Capacity", f"{entity.total_pv_capacity:.2f} kW")
            if entity.building_type:
                content += _line("Building Type", entity.building_type)
        case SolarArray():
            if entity.installed_capacity is not None:
                content += _line("Capacity", f"{entity.installed_capacity:.2f} kW")
            if entity.annual_production is not None:
                content += _line("Annual Production", f"{entity.annual_production:.2f} kWh/year")
            if entity.total_embodied_co2 is not None:
                content += _line("Embodied CO₂", f"{entity.total_embodied_co2:.2f} kgCO₂e")
        case Battery():
            if entity.capacity is not None:
                content += _line("Capacity", f"{entity.capacity:.2f} kWh")
            if entity.total_cost is not None:
                content += _line("Cost", f"{entity.total_cost:.2f} SEK")
            if entity.total_embodied_co2 is not None:
                content += _line("Embodied CO₂", f"{entity.total_embodied_co2:.2f} kgCO₂e")
        case ChargePoint():
            if entity.capacity is not None:
                content += _line("Capacity", f"{entity.capacity:.2f} kW")
            content += _line("V2G Enabled", "Yes" if entity.is_v2g else "No")
            if entity.total_connected_evs:
                content += _line("Connected EVs", str(entity.total_connected_evs))
        case GridConnection():
            pass

    if entity.owner and not isinstance(entity, GridConnection):
        content += _line("Owner", entity.owner)
    return content


def connection_tooltip(
    connection: Connection,
    source: Entity | None,
    target: Entity | None,
    hour: int,
    detailed: bool = True,
) -> str:
    """Endpoint names, signed flow and direction at ``hour``."""
    source_name = display_name(source) if source is not None else connection.source
    target_name = display_name(target) if target is not None else connection.target
    value = connection.flow_at(hour)

    content = '<div class="font-semibold">Energy Flow</div>'
    content += f"<div>From: {escape(source_name)}</div>"
    content += f"<div>To: {escape(target_name)}</div>"
    content += f"<div>Flow: {value:.2f} kW</div>"
    if not detailed:
        return content

    if value < 0:
        content += f"<div>Direction: {escape(target_name)} → {escape(source_name)}</div>"
    elif value > 0:
        content += f"<div>Direction: {escape(source_name)} → {escape(target_name)}</div>"
    if source is not None:
        content += f'<div class="text-sm text-gray-500">Source: {escape(traits_for(source).source_label)}</div>'
    return content
