"""Filter pipeline: raw dataset + criteria + hour -> visible subgraph.

Everything here is pure. Connections whose endpoints are filtered out are
dropped silently; that is the normal steady state, not an error.
"""

import logging
import math
from dataclasses import dataclass

from core.categories import effective_capacity
from core.models import (
    ChargePoint,
    CommunityDataset,
    Connection,
    Entity,
    FilterCriteria,
    V2GFilter,
    entity_category,
)
from pipeline.keys import filter_key, topology_key
from pipeline.kpis import CommunityKpis, KpiScope, aggregate_kpis

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY_MAX = 1000.0


@dataclass(frozen=True)
class Projection:
    """Output of one pipeline run."""

    hour: int
    entities: list[Entity]
    connections: list[Connection]
    kpis: CommunityKpis
    topology_key: str
    filter_key: str

    @property
    def entity_ids(self) -> list[str]:
        return [e.id for e in self.entities]

    @property
    def links(self) -> list[tuple[str, str]]:
        """Endpoint pairs of the visible connections."""
        return [c.key for c in self.connections]


def default_criteria(dataset: CommunityDataset) -> FilterCriteria:
    """Startup filters: everything visible, capacity range rounded up to the next 10."""
    capacities = [c for c in (effective_capacity(e) for e in dataset.entities) if c > 0]
    capacity_max = math.ceil(max(capacities) / 10) * 10 if capacities else DEFAULT_CAPACITY_MAX
    return FilterCriteria(capacity_max=float(capacity_max))


def _v2g_matches(entity: ChargePoint, mode: V2GFilter) -> bool:
    match mode:
        case V2GFilter.ANY:
            return True
        case V2GFilter.ONLY:
            return entity.is_v2g
        case V2GFilter.EXCLUDE:
            return not entity.is_v2g


def entity_passes(entity: Entity, criteria: FilterCriteria) -> bool:
    if entity_category(entity) not in criteria.categories:
        return False
    if entity.owner and criteria.owners and entity.owner not in criteria.owners:
        return False
    if isinstance(entity, ChargePoint) and not _v2g_matches(entity, criteria.v2g):
        return False
    capacity = effective_capacity(entity)
    # zero-capacity entities are never excluded by the range
    return not (capacity > 0 and (capacity < criteria.capacity_min or capacity > criteria.capacity_max))


def connection_passes(connection: Connection, visible_ids: set[str], criteria: FilterCriteria, hour: int) -> bool:
    if connection.source not in visible_ids or connection.target not in visible_ids:
        return False
    return connection.magnitude_at(hour) >= criteria.min_flow


def project(
    dataset: CommunityDataset,
    criteria: FilterCriteria,
    hour: int,
    kpi_scope: KpiScope = KpiScope.COMMUNITY,
) -> Projection:
    """Run the pipeline for one (criteria, hour) pair.

    The topology key covers visible entities and the connections whose both
    endpoints are visible. The per-hour minimum-flow test prunes
    ``Projection.connections`` but not the key, so an hour change never
    forces a layout rebuild.
    """
    entities = [e for e in dataset.entities if entity_passes(e, criteria)]
    visible_ids = {e.id for e in entities}

    structural = [c for c in dataset.connections if c.source in visible_ids and c.target in visible_ids]
    connections = [c for c in structural if connection_passes(c, visible_ids, criteria, hour)]

    dropped = len(dataset.connections) - len(structural)
    if dropped:
        logger.debug("Dropped %d connections with filtered-out endpoints", dropped)

    kpis = aggregate_kpis(dataset.entities if kpi_scope == KpiScope.COMMUNITY else entities)

    return Projection(
        hour=hour,
        entities=entities,
        connections=connections,
        kpis=kpis,
        topology_key=topology_key(visible_ids, (c.key for c in structural)),
        filter_key=filter_key(criteria),
    )
