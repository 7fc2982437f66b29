"""Render layer tests: flow styling, tweens, particles and entity markers."""

from dataclasses import replace

import pytest

from core.models import FilterCriteria, entity_category
from data.sample_community import create_minimal_community, create_sample_community
from pipeline import project
from render import (
    PRESETS,
    ConnectionsLayer,
    Direction,
    EntitiesLayer,
    ParticleLayer,
    QualityLevel,
    RenderCache,
    TransitionGroup,
    link_width,
)
from render.particles import particle_count, particle_radius, travel_duration
from render.styles import desaturate, link_color, link_opacity, speed_class
from render.transitions import elastic_out, linear, quad_out
from simulation import LayoutConfig, LayoutSimulation, PositionStore

BALANCED = PRESETS[QualityLevel.BALANCED]
MINIMAL = PRESETS[QualityLevel.MINIMAL]
FULL = PRESETS[QualityLevel.FULL]

# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------


def _snapshot(dataset, criteria=None, hour=0):
    projection = project(dataset, criteria or FilterCriteria(), hour)
    sim = LayoutSimulation(PositionStore(), config=LayoutConfig(random_seed=5), dimensions=(1000.0, 800.0))
    sim.sync(projection.entity_ids, projection.links, projection.topology_key)
    return sim.snapshot()


def _categories(dataset):
    return {e.id: entity_category(e) for e in dataset.entities}


# -----------------------------------------------------------------------------
# Styles
# -----------------------------------------------------------------------------


def test_width_is_non_decreasing_in_flow() -> None:
    magnitudes = [0.0, 0.001, 0.05, 0.5, 1.0, 3.0, 7.5, 19.9, 20.0, 50.0, 1e6]
    widths = [link_width(m) for m in magnitudes]
    assert widths == sorted(widths)
    assert widths[0] == 1.0
    assert widths[-1] == 12.0


def test_width_is_non_decreasing_for_every_hour_of_sample_data() -> None:
    dataset = create_sample_community()
    snapshot = _snapshot(dataset)
    layer = ConnectionsLayer(RenderCache(), TransitionGroup())
    for hour in range(48):
        layer.update(project(dataset, FilterCriteria(), hour).connections, _categories(dataset), hour, MINIMAL, 0.0)
        glyphs = layer.render(snapshot, 0.0)
        ordered = sorted(glyphs, key=lambda g: abs(g.flow))
        assert [g.width for g in ordered] == sorted(g.width for g in ordered)


def test_opacity_and_color_fade_toward_zero_flow() -> None:
    assert link_opacity(0.0) < link_opacity(0.1) < link_opacity(20.0) == 1.0
    assert link_color(entity_category(create_minimal_community().entities[0]), 0.0) == "#999999"
    assert link_color(entity_category(create_minimal_community().entities[0]), 5.0) == "#F59E0B"
    assert link_color(entity_category(create_minimal_community().entities[0]), 0.1) != "#F59E0B"
    assert desaturate("#F59E0B", 1.0) == "#F59E0B"
    gray = desaturate("#F59E0B", 0.0)
    assert gray[1:3] == gray[3:5] == gray[5:7]


def test_speed_classes() -> None:
    assert speed_class(0.5) == "slow"
    assert speed_class(2.0) == "normal"
    assert speed_class(4.0) == "fast"


def test_easings_start_at_zero_and_end_at_one() -> None:
    for ease in (linear, quad_out, elastic_out(0.3)):
        assert ease(0.0) == pytest.approx(0.0, abs=1e-9)
        assert ease(1.0) == pytest.approx(1.0, abs=1e-9)
    assert max(elastic_out(0.3)(t / 100) for t in range(101)) > 1.0


# -----------------------------------------------------------------------------
# Connections layer
# -----------------------------------------------------------------------------


def test_scenario_direction_and_width_by_hour() -> None:
    dataset = create_minimal_community()
    snapshot = _snapshot(dataset)
    layer = ConnectionsLayer(RenderCache(), TransitionGroup())

    layer.update(project(dataset, FilterCriteria(), 0).connections, _categories(dataset), 0, MINIMAL, 0.0)
    (glyph,) = layer.render(snapshot, 0.0)
    assert glyph.direction == Direction.FORWARD
    assert glyph.width > 0
    assert glyph.color == "#F59E0B"

    layer.update(project(dataset, FilterCriteria(), 1).connections, _categories(dataset), 1, MINIMAL, 1.0)
    (glyph,) = layer.render(snapshot, 1.0)
    assert glyph.direction == Direction.REVERSE

    layer.update(project(dataset, FilterCriteria(min_flow=0.1), 2).connections, _categories(dataset), 2, MINIMAL, 2.0)
    assert layer.render(snapshot, 2.0) == []


def test_hour_restyle_tweens_and_rebuild_is_immediate() -> None:
    dataset = create_minimal_community()
    snapshot = _snapshot(dataset)
    transitions = TransitionGroup()
    layer = ConnectionsLayer(RenderCache(), transitions)
    categories = _categories(dataset)
    connections = dataset.connections

    assert layer.update(connections, categories, 0, BALANCED, 10.0)
    assert layer.render(snapshot, 10.0)[0].width == pytest.approx(link_width(5.0))

    assert not layer.update(connections, categories, 1, BALANCED, 10.0)
    midway = layer.render(snapshot, 10.15)[0].width
    assert link_width(3.0) < midway < link_width(5.0)
    assert layer.render(snapshot, 10.3)[0].width == pytest.approx(link_width(3.0))

    layer.update(connections, categories, 0, MINIMAL, 20.0)
    assert layer.render(snapshot, 20.0)[0].width == pytest.approx(link_width(5.0))
    assert layer.rebuilds == 1
    assert layer.restyles == 2


def test_rebuild_cancels_stale_tweens() -> None:
    dataset = create_sample_community()
    transitions = TransitionGroup()
    layer = ConnectionsLayer(RenderCache(), transitions)
    categories = _categories(dataset)

    layer.update(project(dataset, FilterCriteria(), 8).connections, categories, 8, FULL, 0.0)
    layer.update(project(dataset, FilterCriteria(), 20).connections, categories, 20, FULL, 0.0)
    assert len(transitions) > 0

    narrowed = project(dataset, FilterCriteria(owners=frozenset({"Akademiska Hus"})), 20).connections
    assert layer.update(narrowed, categories, 20, FULL, 0.1)
    assert len(transitions) == 0


def test_virtualisation_limits_flow_styled_links() -> None:
    dataset = create_sample_community()
    snapshot = _snapshot(dataset)
    layer = ConnectionsLayer(RenderCache(), TransitionGroup())
    preset = replace(MINIMAL, max_visible_links=4)

    layer.update(project(dataset, FilterCriteria(), 12).connections, _categories(dataset), 12, preset, 0.0)
    glyphs = layer.render(snapshot, 0.0)
    highlighted = [g for g in glyphs if g.highlighted]
    background = [g for g in glyphs if not g.highlighted]
    assert len(highlighted) == 4
    assert min(abs(g.flow) for g in highlighted) >= max(abs(g.flow) for g in background)
    assert all(g.width == 1.0 for g in background)


def test_hovered_connection_is_widened() -> None:
    dataset = create_minimal_community()
    snapshot = _snapshot(dataset)
    layer = ConnectionsLayer(RenderCache(), TransitionGroup())
    layer.update(dataset.connections, _categories(dataset), 0, MINIMAL, 0.0)
    layer.set_hovered(("solar_A", "building"))
    glyph = layer.render(snapshot, 0.0)[0]
    assert glyph.hovered
    assert glyph.width == pytest.approx(max(8.0, link_width(5.0) * 1.8))


def test_connection_hit_test_skips_idle_links() -> None:
    dataset = create_minimal_community()
    snapshot = _snapshot(dataset)
    layer = ConnectionsLayer(RenderCache(), TransitionGroup())
    a = snapshot.position("solar_A")
    b = snapshot.position("building")
    mid = ((a[0] + b[0]) / 2, (a[1] + b[1]) / 2)

    layer.update(dataset.connections, _categories(dataset), 0, MINIMAL, 0.0)
    assert layer.hit_test(snapshot, *mid) is not None
    layer.update(dataset.connections, _categories(dataset), 5, MINIMAL, 0.0)
    assert layer.hit_test(snapshot, *mid) is None


# -----------------------------------------------------------------------------
# Particles
# -----------------------------------------------------------------------------


def test_particle_parameters() -> None:
    assert particle_count(0.2) == 1
    assert particle_count(1.2) == 2
    assert particle_count(5.0) == 3
    assert particle_radius(5.0) == pytest.approx(4.0 * 32 / 50)
    assert travel_duration(5.0) == 1.0
    assert travel_duration(0.5) == 2.75


def test_particles_only_while_playing() -> None:
    dataset = create_minimal_community()
    snapshot = _snapshot(dataset)
    layer = ParticleLayer()
    layer.update(dataset.connections, _categories(dataset), 0, BALANCED, 0.0)
    assert len(layer) == 0

    layer.set_playing(True, 0.0)
    assert len(layer) == 3
    assert len(layer.render(snapshot, 0.0)) == 1  # later particles are staggered
    assert len(layer.render(snapshot, 0.5)) == 3

    layer.set_playing(False, 1.0)
    assert len(layer) == 0
    assert layer.render(snapshot, 1.0) == []


def test_particles_follow_flow_direction() -> None:
    dataset = create_minimal_community()
    snapshot = _snapshot(dataset)
    layer = ParticleLayer()
    layer.set_playing(True, 0.0)
    source = snapshot.position("solar_A")

    layer.update(dataset.connections, _categories(dataset), 0, BALANCED, 0.0)
    forward = layer.render(snapshot, 0.0)[0]
    layer.update(dataset.connections, _categories(dataset), 1, BALANCED, 0.0)
    reverse = layer.render(snapshot, 0.0)[0]

    def dist(glyph):
        return ((glyph.x - source[0]) ** 2 + (glyph.y - source[1]) ** 2) ** 0.5

    assert dist(forward) == pytest.approx(35.0)
    assert dist(reverse) > dist(forward)


def test_particles_respect_preset_budget() -> None:
    dataset = create_sample_community()
    layer = ParticleLayer()
    layer.set_playing(True, 0.0)

    layer.update(dataset.connections, _categories(dataset), 12, MINIMAL, 0.0)
    assert len(layer) == 0

    layer.update(dataset.connections, _categories(dataset), 12, BALANCED, 0.0)
    assert len({(s.source, s.target) for s in layer.specs}) <= BALANCED.max_particles


# -----------------------------------------------------------------------------
# Entities
# -----------------------------------------------------------------------------


def test_entity_markers() -> None:
    dataset = create_sample_community()
    snapshot = _snapshot(dataset)
    cache = RenderCache()
    layer = EntitiesLayer(cache, TransitionGroup())
    layer.update(dataset.entities, dataset.connections, 12, MINIMAL, 0.0)
    glyphs = {g.id: g for g in layer.render(snapshot, 0.0)}

    assert glyphs["SB1"].pinned
    assert not glyphs["SB1"].draggable
    assert glyphs["SB1"].cursor == "not-allowed"
    assert glyphs["grid"].draggable
    assert glyphs["grid"].active
    assert glyphs["grid"].radius == pytest.approx(36.0)
    assert glyphs["grid"].aura_radius == pytest.approx(45.0)
    assert glyphs["SB1"].badges == ("pv",)
    assert glyphs["cp-1"].badges == ("v2g",)
    assert glyphs["SB1"].inner_label == "SB"
    assert glyphs["grid"].icon is not None
    assert cache.icon_builds == 5


def test_entity_inactive_without_flow() -> None:
    dataset = create_minimal_community()
    snapshot = _snapshot(dataset)
    layer = EntitiesLayer(RenderCache(), TransitionGroup())
    layer.update(dataset.entities, dataset.connections, 2, MINIMAL, 0.0)
    glyphs = {g.id: g for g in layer.render(snapshot, 0.0)}
    assert not glyphs["solar_A"].active
    assert glyphs["solar_A"].radius == 30.0


def test_entity_hit_test_and_selection() -> None:
    dataset = create_minimal_community()
    snapshot = _snapshot(dataset)
    layer = EntitiesLayer(RenderCache(), TransitionGroup())
    layer.update(dataset.entities, dataset.connections, 0, MINIMAL, 0.0)
    x, y = snapshot.position("battery")

    assert layer.hit_test(snapshot, x + 5, y - 5).id == "battery"
    assert layer.hit_test(snapshot, x + 1e6, y) is None

    layer.set_selected("battery")
    assert layer.selected == "battery"
    layer.update([e for e in dataset.entities if e.id != "battery"], [], 0, MINIMAL, 1.0)
    assert layer.selected is None
