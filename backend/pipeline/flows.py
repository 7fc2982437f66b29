"""Per-entity and per-category flow summaries at a given hour."""

from dataclasses import dataclass, field

from core.models import HOURS_IN_WINDOW, CommunityDataset, Connection, EntityCategory, entity_category

ACTIVE_FLOW_THRESHOLD = 0.1  # kWh


def entity_energy_flow(entity_id: str, connections: list[Connection], hour: int) -> float:
    """Total |flow| through an entity at ``hour``."""
    return sum(c.magnitude_at(hour) for c in connections if c.touches(entity_id))


def has_active_flow(
    entity_id: str,
    connections: list[Connection],
    hour: int,
    threshold: float = ACTIVE_FLOW_THRESHOLD,
) -> bool:
    return any(c.touches(entity_id) and c.magnitude_at(hour) >= threshold for c in connections)


def flow_totals_by_entity(connections: list[Connection], hour: int) -> dict[str, float]:
    """Total |flow| per entity id in one pass over the connections."""
    totals: dict[str, float] = {}
    for c in connections:
        magnitude = c.magnitude_at(hour)
        totals[c.source] = totals.get(c.source, 0.0) + magnitude
        totals[c.target] = totals.get(c.target, 0.0) + magnitude
    return totals


@dataclass
class CategoryFlow:
    category: EntityCategory
    incoming: float = 0.0
    outgoing: float = 0.0


def category_flow_summary(dataset: CommunityDataset, hour: int) -> list[CategoryFlow]:
    """Positive flow leaving and entering each category at ``hour``.

    Negative (reverse) values are ignored, matching the Sankey-style summary.
    """
    summary = {c: CategoryFlow(category=c) for c in EntityCategory}
    for connection in dataset.connections:
        value = connection.flow_at(hour)
        if value <= 0:
            continue
        source = dataset.entity(connection.source)
        target = dataset.entity(connection.target)
        if source is None or target is None:
            continue
        summary[entity_category(source)].outgoing += value
        summary[entity_category(target)].incoming += value
    return list(summary.values())


@dataclass
class FlowHistory:
    """Hourly incoming and outgoing flow series for the detail panel."""

    entity_id: str
    incoming: list[float] = field(default_factory=lambda: [0.0] * HOURS_IN_WINDOW)
    outgoing: list[float] = field(default_factory=lambda: [0.0] * HOURS_IN_WINDOW)


def entity_flow_history(entity_id: str, connections: list[Connection]) -> FlowHistory:
    """Direction-aware hourly totals: a negative value on an outgoing link is incoming energy."""
    history = FlowHistory(entity_id=entity_id)
    for connection in connections:
        if not connection.touches(entity_id):
            continue
        for hour, value in enumerate(connection.series()):
            if value == 0:
                continue
            leaving = (value > 0) == (connection.source == entity_id)
            if leaving:
                history.outgoing[hour] += abs(value)
            else:
                history.incoming[hour] += abs(value)
    return history
