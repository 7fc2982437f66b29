"""Filter & aggregation pipeline tests against the minimal and campus communities."""

from dataclasses import replace

from core.models import (
    HOURS_IN_WINDOW,
    ChargePoint,
    CommunityDataset,
    Connection,
    EntityCategory,
    FilterCriteria,
    SolarArray,
    V2GFilter,
)
from data.sample_community import create_minimal_community, create_sample_community
from pipeline import (
    KpiScope,
    aggregate_kpis,
    category_flow_summary,
    default_criteria,
    entity_energy_flow,
    entity_flow_history,
    filter_key,
    has_active_flow,
    project,
)

# -----------------------------------------------------------------------------
# Fixtures
# -----------------------------------------------------------------------------

ALL_CRITERIA = [
    FilterCriteria(),
    FilterCriteria(categories=frozenset({EntityCategory.BUILDING, EntityCategory.GRID})),
    FilterCriteria(categories=frozenset({EntityCategory.SOLAR})),
    FilterCriteria(owners=frozenset({"Akademiska Hus"})),
    FilterCriteria(v2g=V2GFilter.ONLY),
    FilterCriteria(v2g=V2GFilter.EXCLUDE),
    FilterCriteria(capacity_min=15.0, capacity_max=100.0),
    FilterCriteria(min_flow=10.0),
    FilterCriteria(categories=frozenset()),
]


def _ids(projection) -> set[str]:
    return {e.id for e in projection.entities}


# -----------------------------------------------------------------------------
# Structural properties
# -----------------------------------------------------------------------------


def test_filtered_set_is_subset_without_dangling_connections() -> None:
    dataset = create_sample_community()
    raw_ids = {e.id for e in dataset.entities}

    for criteria in ALL_CRITERIA:
        for hour in (0, 9, 13, 47):
            projection = project(dataset, criteria, hour)
            visible = _ids(projection)
            assert visible <= raw_ids
            for connection in projection.connections:
                assert connection.source in visible
                assert connection.target in visible


def test_same_criteria_twice_gives_identical_result() -> None:
    dataset = create_sample_community()
    criteria = FilterCriteria(owners=frozenset({"Chalmersfastigheter"}), min_flow=1.0)

    first = project(dataset, criteria, 12)
    second = project(dataset, criteria, 12)

    assert first == second
    assert first.topology_key == second.topology_key
    assert first.filter_key == second.filter_key


def test_hour_change_keeps_topology_key() -> None:
    dataset = create_sample_community()
    for criteria in (FilterCriteria(), FilterCriteria(min_flow=5.0)):
        keys = {project(dataset, criteria, hour).topology_key for hour in range(HOURS_IN_WINDOW)}
        assert len(keys) == 1


def test_filter_change_changes_topology_key() -> None:
    dataset = create_sample_community()
    everything = project(dataset, FilterCriteria(), 0)
    solar_only = project(dataset, FilterCriteria(categories=frozenset({EntityCategory.SOLAR})), 0)
    assert everything.topology_key != solar_only.topology_key


def test_filter_key_ignores_set_order() -> None:
    a = FilterCriteria(owners=frozenset({"b", "a"}))
    b = FilterCriteria(owners=frozenset({"a", "b"}))
    assert filter_key(a) == filter_key(b)
    assert filter_key(a) != filter_key(replace(a, min_flow=1.0))


# -----------------------------------------------------------------------------
# KPIs
# -----------------------------------------------------------------------------


def test_kpi_counts_sum_to_raw_total() -> None:
    dataset = create_sample_community()
    for criteria in ALL_CRITERIA:
        kpis = project(dataset, criteria, 0).kpis
        assert sum(kpis.counts.values()) == len(dataset.entities)
        assert kpis.total_entities == len(dataset.entities)


def test_kpis_describe_whole_community_unless_filtered_scope_requested() -> None:
    dataset = create_sample_community()
    criteria = FilterCriteria(categories=frozenset({EntityCategory.SOLAR}))

    community = project(dataset, criteria, 0).kpis
    filtered = project(dataset, criteria, 0, kpi_scope=KpiScope.FILTERED).kpis

    assert community.counts["building"] == 5
    assert filtered.counts["building"] == 0
    assert filtered.counts["solar"] == 3


def test_kpi_totals() -> None:
    kpis = aggregate_kpis(create_sample_community().entities)
    assert kpis.total_pv_capacity == 120.0 + 45.0 + 30.0
    assert kpis.total_battery_capacity == 200.0
    assert kpis.v2g_charge_points == 1
    assert kpis.distinct_owners == 3
    assert kpis.total_embodied_co2 == 54_000.0 + 20_000.0 + 13_500.0 + 16_000.0


# -----------------------------------------------------------------------------
# Scenarios on the five-entity community
# -----------------------------------------------------------------------------


def test_minimal_community_flow_direction_by_hour() -> None:
    dataset = create_minimal_community()
    criteria = default_criteria(dataset)

    at_0 = project(dataset, criteria, 0)
    at_1 = project(dataset, criteria, 1)
    assert [c.flow_at(0) for c in at_0.connections] == [5.0]
    assert [c.flow_at(1) for c in at_1.connections] == [-3.0]

    at_2 = project(dataset, replace(criteria, min_flow=0.5), 2)
    assert at_2.connections == []
    assert at_2.topology_key == at_0.topology_key


def test_capacity_range_keeps_zero_capacity_entities() -> None:
    dataset = create_minimal_community()
    projection = project(dataset, FilterCriteria(capacity_min=15.0, capacity_max=100.0), 0)
    assert _ids(projection) == {"solar_B", "battery", "grid", "building"}


def test_v2g_only_without_charge_points_is_empty_for_category() -> None:
    dataset = create_minimal_community()
    projection = project(
        dataset,
        FilterCriteria(categories=frozenset({EntityCategory.CHARGE_POINT}), v2g=V2GFilter.ONLY),
        0,
    )
    assert projection.entities == []
    assert projection.connections == []


def test_v2g_filter_applies_only_to_charge_points() -> None:
    dataset = create_sample_community()
    only = _ids(project(dataset, FilterCriteria(v2g=V2GFilter.ONLY), 0))
    exclude = _ids(project(dataset, FilterCriteria(v2g=V2GFilter.EXCLUDE), 0))
    assert "cp-1" in only and "cp-2" not in only
    assert "cp-2" in exclude and "cp-1" not in exclude
    assert "SB1" in only and "SB1" in exclude


def test_owner_filter_keeps_ownerless_entities() -> None:
    dataset = create_sample_community()
    visible = _ids(project(dataset, FilterCriteria(owners=frozenset({"Akademiska Hus"})), 0))
    assert "grid" in visible
    assert "MC2" in visible
    assert "SB1" not in visible


def test_default_criteria_rounds_capacity_up() -> None:
    assert default_criteria(create_minimal_community()).capacity_max == 50.0
    assert default_criteria(create_sample_community()).capacity_max == 200.0
    assert default_criteria(CommunityDataset(entities=[], connections=[])).capacity_max == 1000.0


# -----------------------------------------------------------------------------
# Malformed data
# -----------------------------------------------------------------------------


def test_malformed_flow_reads_as_zero() -> None:
    dataset = CommunityDataset(
        entities=[SolarArray(id="a"), ChargePoint(id="b")],
        connections=[
            Connection(source="a", target="b", flow="not a list"),
            Connection(source="b", target="a", flow=[1.0, None, "x", float("nan")]),
        ],
    )
    for hour in (0, 1, 2, 3, 47, 100, -1):
        projection = project(dataset, FilterCriteria(), hour)
        assert len(projection.connections) == 2

    broken, partial = dataset.connections
    assert broken.flow_at(0) == 0.0
    assert partial.flow_at(0) == 1.0
    assert [partial.flow_at(h) for h in (1, 2, 3, 4)] == [0.0, 0.0, 0.0, 0.0]
    assert project(dataset, FilterCriteria(min_flow=0.5), 1).connections == []


def test_connection_to_missing_entity_is_dropped() -> None:
    dataset = CommunityDataset(
        entities=[SolarArray(id="a")],
        connections=[Connection(source="a", target="ghost", flow=[1.0] * HOURS_IN_WINDOW)],
    )
    assert project(dataset, FilterCriteria(), 0).connections == []


# -----------------------------------------------------------------------------
# Flow helpers
# -----------------------------------------------------------------------------


def test_entity_flow_helpers() -> None:
    dataset = create_minimal_community()
    connections = dataset.connections

    assert entity_energy_flow("building", connections, 0) == 5.0
    assert entity_energy_flow("building", connections, 1) == 3.0
    assert has_active_flow("solar_A", connections, 0)
    assert not has_active_flow("solar_A", connections, 2)
    assert not has_active_flow("grid", connections, 0)


def test_flow_history_is_direction_aware() -> None:
    history = entity_flow_history("solar_A", create_minimal_community().connections)
    assert history.outgoing[0] == 5.0
    assert history.incoming[0] == 0.0
    assert history.incoming[1] == 3.0
    assert history.outgoing[1] == 0.0
    assert len(history.incoming) == HOURS_IN_WINDOW


def test_category_summary_ignores_reverse_flow() -> None:
    dataset = create_minimal_community()
    at_0 = {s.category: s for s in category_flow_summary(dataset, 0)}
    at_1 = {s.category: s for s in category_flow_summary(dataset, 1)}
    assert at_0[EntityCategory.SOLAR].outgoing == 5.0
    assert at_0[EntityCategory.BUILDING].incoming == 5.0
    assert at_1[EntityCategory.SOLAR].outgoing == 0.0
