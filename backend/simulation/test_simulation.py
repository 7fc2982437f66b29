"""Layout simulation tests: seeding, pinned invariant, rebuild vs. top-up, drag, teardown."""

import numpy as np
import pytest

from core.models import FilterCriteria
from data.sample_community import create_minimal_community, create_sample_community
from pipeline import project
from simulation import LayoutConfig, LayoutSimulation, Pinned, PositionStore, rotate_point
from simulation.forces import apply_collisions, apply_many_body, link_parameters

# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------


def _simulation(config: LayoutConfig | None = None) -> LayoutSimulation:
    return LayoutSimulation(PositionStore(), config=config or LayoutConfig(random_seed=3), dimensions=(1200.0, 800.0))


def _sync(sim: LayoutSimulation, projection) -> bool:
    return sim.sync(projection.entity_ids, projection.links, projection.topology_key)


# -----------------------------------------------------------------------------
# Position store
# -----------------------------------------------------------------------------


def test_rotate_point_quarter_turn() -> None:
    x, y = rotate_point(1.0, 0.0, -90.0, 0.0, 0.0)
    assert x == pytest.approx(0.0, abs=1e-9)
    assert y == pytest.approx(-1.0)
    assert rotate_point(3.0, 4.0, 360.0, 0.0, 0.0) == (3.0, 4.0)


def test_pinned_table_is_scaled_then_rotated_around_image_centre() -> None:
    store = PositionStore()
    resolved = store.resolve("SB1")
    assert isinstance(resolved, Pinned)
    assert resolved.x == pytest.approx(723.292, abs=1e-3)
    assert resolved.y == pytest.approx(1473.566, abs=1e-3)
    assert store.is_pinned("SB1")
    assert not store.is_pinned("grid")
    assert store.pinned_coordinate("grid") is None


# -----------------------------------------------------------------------------
# Seeding and rebuild
# -----------------------------------------------------------------------------


def test_free_entities_are_seeded_apart_from_each_other() -> None:
    sim = _simulation()
    dataset = create_minimal_community()
    assert _sync(sim, project(dataset, FilterCriteria(), 0))

    positions = np.array(list(sim.positions().values()))
    assert len(positions) == 5
    assert not np.allclose(positions, 0.0)
    distances = np.linalg.norm(positions[:, None, :] - positions[None, :, :], axis=-1)
    assert distances[~np.eye(5, dtype=bool)].min() > 1.0


def test_hour_change_does_not_rebuild_or_reseed() -> None:
    sim = _simulation()
    dataset = create_sample_community()
    _sync(sim, project(dataset, FilterCriteria(), 0))
    for _ in range(50):
        sim.step()
    before = sim.positions()
    generation = sim.generation

    for hour in range(1, 48):
        assert not _sync(sim, project(dataset, FilterCriteria(min_flow=2.0), hour))

    assert sim.generation == generation
    assert sim.positions() == before
    assert sim.alpha >= 0.1


def test_links_pruned_by_min_flow_stop_pulling() -> None:
    dataset = create_minimal_community()
    criteria = FilterCriteria(min_flow=1.0)
    linked = project(dataset, criteria, 0)
    pruned = project(dataset, criteria, 2)
    assert linked.topology_key == pruned.topology_key
    assert pruned.connections == []

    sim = _simulation()
    _sync(sim, linked)
    assert sim.snapshot().link_sources.size == 1
    assert not _sync(sim, pruned)
    assert sim.snapshot().link_sources.size == 0

    unlinked = _simulation()
    _sync(unlinked, pruned)
    for _ in range(30):
        sim.step()
        unlinked.step()
    assert np.allclose(list(sim.positions().values()), list(unlinked.positions().values()))


def test_rebuild_keeps_positions_of_entities_that_stay_visible() -> None:
    sim = _simulation()
    dataset = create_sample_community()
    _sync(sim, project(dataset, FilterCriteria(), 0))
    sim.settle()
    before = sim.positions()

    narrowed = project(dataset, FilterCriteria(owners=frozenset({"Akademiska Hus"})), 0)
    assert _sync(sim, narrowed)
    after = sim.positions()

    assert set(after) == set(narrowed.entity_ids)
    for entity_id, position in after.items():
        assert position == before[entity_id]
    assert sim.alpha == 1.0


def test_settle_drains_energy_and_stops_stepping() -> None:
    sim = _simulation()
    _sync(sim, project(create_minimal_community(), FilterCriteria(), 0))
    steps = sim.settle()
    assert 250 < steps < 400
    assert sim.is_settled
    assert not sim.step()


def test_collision_keeps_entities_apart_after_settling() -> None:
    sim = _simulation()
    _sync(sim, project(create_minimal_community(), FilterCriteria(), 0))
    sim.settle()
    positions = np.array(list(sim.positions().values()))
    distances = np.linalg.norm(positions[:, None, :] - positions[None, :, :], axis=-1)
    assert distances[~np.eye(len(positions), dtype=bool)].min() > 150.0


# -----------------------------------------------------------------------------
# Pinned invariant and drag
# -----------------------------------------------------------------------------


def test_pinned_entities_never_move() -> None:
    sim = _simulation()
    store = PositionStore()
    _sync(sim, project(create_sample_community(), FilterCriteria(), 0))

    for _ in range(100):
        sim.step()
        for entity_id in ("SB1", "HA", "HB", "MC2", "Kårhus", "PV-Plant"):
            assert sim.position(entity_id) == store.pinned_coordinate(entity_id)

    assert not sim.drag_start("SB1")
    assert not sim.drag("SB1", 0.0, 0.0)
    assert sim.position("SB1") == store.pinned_coordinate("SB1")
    assert sim.snapshot().pinned[sim.snapshot().index["SB1"]]


def test_drag_fixes_free_entity_until_released() -> None:
    sim = _simulation()
    _sync(sim, project(create_minimal_community(), FilterCriteria(), 0))
    sim.settle()

    assert sim.drag_start("grid")
    assert sim.alpha_target == 0.3
    assert sim.drag("grid", 10.0, 20.0)
    for _ in range(20):
        assert sim.step()
        assert sim.position("grid") == (10.0, 20.0)
    assert sim.snapshot().dragged[sim.snapshot().index["grid"]]

    assert sim.drag_end("grid")
    assert sim.alpha_target == 0.0
    sim.step()
    assert sim.position("grid") != (10.0, 20.0)


def test_unknown_ids_are_ignored() -> None:
    sim = _simulation()
    _sync(sim, project(create_minimal_community(), FilterCriteria(), 0))
    assert sim.position("nope") is None
    assert not sim.drag_start("nope")
    assert not sim.drag_end("grid")


# -----------------------------------------------------------------------------
# Lifecycle
# -----------------------------------------------------------------------------


def test_resize_moves_center_without_rebuild() -> None:
    sim = _simulation()
    _sync(sim, project(create_minimal_community(), FilterCriteria(), 0))
    generation = sim.generation
    sim.set_dimensions(2000.0, 1000.0)
    assert sim.center == (1000.0, 500.0)
    assert sim.generation == generation


def test_operations_after_stop_are_no_ops() -> None:
    sim = _simulation()
    projection = project(create_minimal_community(), FilterCriteria(), 0)
    _sync(sim, projection)
    before = sim.positions()
    sim.stop()
    sim.stop()

    assert not sim.step()
    assert not _sync(sim, project(create_sample_community(), FilterCriteria(), 0))
    assert not sim.drag_start("grid")
    sim.top_up()
    sim.set_dimensions(10.0, 10.0)
    assert sim.positions() == before
    assert sim.alpha == 0.0


def test_snapshot_is_read_only_copy() -> None:
    sim = _simulation()
    _sync(sim, project(create_minimal_community(), FilterCriteria(), 0))
    snapshot = sim.snapshot()
    assert not snapshot.positions.flags.writeable
    sim.step()
    assert snapshot.position("grid") != sim.position("grid")
    assert snapshot.link_index("solar_A", "building") == 0
    assert snapshot.link_index("building", "solar_A") is None


# -----------------------------------------------------------------------------
# Force terms
# -----------------------------------------------------------------------------


def test_link_strength_uses_lower_degree() -> None:
    sources = np.array([0, 0, 0])
    targets = np.array([1, 2, 3])
    strength, bias = link_parameters(4, sources, targets)
    assert np.allclose(strength, 1.0)
    assert np.allclose(bias, 0.75)


def test_many_body_repels_and_collisions_separate() -> None:
    pos = np.array([[0.0, 0.0], [10.0, 0.0]])
    vel = np.zeros((2, 2))
    apply_many_body(pos, vel, -800.0, 1.0, 1.0)
    assert vel[0, 0] < 0 < vel[1, 0]

    vel = np.zeros((2, 2))
    assert apply_collisions(pos, vel, 110.0, 1.0) == 1
    assert vel[0, 0] == pytest.approx(-105.0)
    assert vel[1, 0] == pytest.approx(105.0)
