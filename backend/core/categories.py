"""Per-category traits: colors, capacity fields and label formatting.

All category-dependent styling reads from ``CATEGORY_TRAITS`` instead of
branching on the category at each call site.
"""

from collections.abc import Callable
from dataclasses import dataclass

from core.models import (
    Building,
    ChargePoint,
    Entity,
    EntityCategory,
    entity_category,
    numeric_attribute,
)


@dataclass(frozen=True)
class CategoryTraits:
    label: str  # human readable type label
    color: str  # entity fill
    flow_color: str  # connection/particle color when this category is the source
    capacity_fields: tuple[str, ...]  # ordered synonyms, first non-zero wins
    capacity_unit: str
    source_label: str  # "Source: ..." line of a connection tooltip
    type_label: Callable[[Entity], str]


def _building_type_label(entity: Entity) -> str:
    if isinstance(entity, Building) and entity.building_type:
        return entity.building_type
    return "Building"


def _fixed(label: str) -> Callable[[Entity], str]:
    return lambda _entity: label


CATEGORY_TRAITS: dict[EntityCategory, CategoryTraits] = {
    EntityCategory.BUILDING: CategoryTraits(
        label="building",
        color="#4B5563",
        flow_color="#8B5CF6",
        capacity_fields=("capacity", "installed_capacity"),
        capacity_unit="kW",
        source_label="Building Energy",
        type_label=_building_type_label,
    ),
    EntityCategory.SOLAR: CategoryTraits(
        label="solar",
        color="#F59E0B",
        flow_color="#F59E0B",
        capacity_fields=("installed_capacity", "capacity"),
        capacity_unit="kW",
        source_label="Solar Energy",
        type_label=_fixed("Solar PV"),
    ),
    EntityCategory.GRID: CategoryTraits(
        label="grid",
        color="#10B981",
        flow_color="#10B981",
        capacity_fields=("capacity",),
        capacity_unit="kW",
        source_label="Grid Energy",
        type_label=_fixed("Grid"),
    ),
    EntityCategory.BATTERY: CategoryTraits(
        label="battery",
        color="#3B82F6",
        flow_color="#3B82F6",
        capacity_fields=("capacity", "installed_capacity"),
        capacity_unit="kWh",
        source_label="Battery Energy",
        type_label=_fixed("Battery"),
    ),
    EntityCategory.CHARGE_POINT: CategoryTraits(
        label="charge point",
        color="#8B5CF6",
        flow_color="#EC4899",
        capacity_fields=("capacity", "installed_capacity"),
        capacity_unit="kW",
        source_label="Charging Energy",
        type_label=_fixed("Charging"),
    ),
}

NEUTRAL_COLOR = "#999999"
V2G_BADGE_COLOR = "#10B981"


def traits_for(entity: Entity) -> CategoryTraits:
    return CATEGORY_TRAITS[entity_category(entity)]


def effective_capacity(entity: Entity) -> float:
    """Capacity used for range filtering: first non-zero synonym field, else 0."""
    for name in traits_for(entity).capacity_fields:
        value = numeric_attribute(entity, name)
        if value:
            return value
    return 0.0


def power_label(entity: Entity) -> str:
    """Short power/capacity caption drawn inside an entity marker."""
    if isinstance(entity, Building):
        value = entity.total_pv_capacity
        return f"{value:.1f} kW" if value else ""
    capacity = effective_capacity(entity)
    if not capacity or entity_category(entity) == EntityCategory.GRID:
        return ""
    return f"{capacity:.1f} kW"


def feature_badges(entity: Entity) -> list[str]:
    """Small indicator badges: on-site PV for buildings, V2G for charge points."""
    badges: list[str] = []
    if isinstance(entity, Building) and entity.total_pv_capacity and entity.total_pv_capacity > 0:
        badges.append("pv")
    if isinstance(entity, ChargePoint) and entity.is_v2g:
        badges.append("v2g")
    return badges


def parse_category(raw: str) -> EntityCategory | None:
    """Parse a category name, accepting the legacy ``pv`` alias for solar."""
    value = raw.strip().lower()
    if value == "pv":
        return EntityCategory.SOLAR
    try:
        return EntityCategory(value)
    except ValueError:
        return None
