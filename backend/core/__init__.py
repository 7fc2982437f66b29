"""Core domain models for the energy community graph."""

from core.categories import (
    CATEGORY_TRAITS,
    CategoryTraits,
    effective_capacity,
    feature_badges,
    parse_category,
    power_label,
    traits_for,
)
from core.models import (
    HOURS_IN_WINDOW,
    Battery,
    Building,
    ChargePoint,
    CommunityDataset,
    Connection,
    Entity,
    EntityCategory,
    FilterCriteria,
    GridConnection,
    SolarArray,
    V2GFilter,
    display_name,
    entity_category,
    numeric_attribute,
)

__all__ = [
    "CATEGORY_TRAITS",
    "HOURS_IN_WINDOW",
    "Battery",
    "Building",
    "CategoryTraits",
    "ChargePoint",
    "CommunityDataset",
    "Connection",
    "Entity",
    "EntityCategory",
    "FilterCriteria",
    "GridConnection",
    "SolarArray",
    "V2GFilter",
    "display_name",
    "effective_capacity",
    "entity_category",
    "feature_badges",
    "numeric_attribute",
    "parse_category",
    "power_label",
    "traits_for",
]
