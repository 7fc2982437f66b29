"""Filter & aggregation pipeline."""

from pipeline.filters import (
    Projection,
    connection_passes,
    default_criteria,
    entity_passes,
    project,
)
from pipeline.flows import (
    ACTIVE_FLOW_THRESHOLD,
    CategoryFlow,
    FlowHistory,
    category_flow_summary,
    entity_energy_flow,
    entity_flow_history,
    flow_totals_by_entity,
    has_active_flow,
)
from pipeline.keys import filter_key, topology_key
from pipeline.kpis import CommunityKpis, KpiScope, aggregate_kpis

__all__ = [
    "ACTIVE_FLOW_THRESHOLD",
    "CategoryFlow",
    "CommunityKpis",
    "FlowHistory",
    "KpiScope",
    "Projection",
    "aggregate_kpis",
    "category_flow_summary",
    "connection_passes",
    "default_criteria",
    "entity_energy_flow",
    "entity_flow_history",
    "entity_passes",
    "filter_key",
    "flow_totals_by_entity",
    "has_active_flow",
    "project",
    "topology_key",
]
