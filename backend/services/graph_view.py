"""GraphView: one interactive view over a community dataset.

Controls only record the latest requested state. ``advance_frame`` applies
that state once, steps the physics, takes one snapshot and lets every layer
read from it, then emits a single ``RenderFrame``. Rapid control changes
between two frames therefore collapse into one consistent frame.
"""

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass, replace

from core.models import (
    HOURS_IN_WINDOW,
    CommunityDataset,
    Connection,
    Entity,
    EntityCategory,
    FilterCriteria,
    entity_category,
)
from interaction.coordinator import DEFAULT_TOOLTIP_CONFIG, AsyncioScheduler, InteractionCoordinator, Scheduler, TooltipConfig
from interaction.overlay import TooltipOverlay, TooltipState
from interaction.panel import DetailPanelContent, detail_panel
from pipeline.filters import Projection, default_criteria, project
from pipeline.kpis import CommunityKpis, KpiScope
from render.cache import RenderCache
from render.connections import ConnectionGlyph, ConnectionsLayer
from render.entities import DEFAULT_ENTITY_STYLE, EntitiesLayer, EntityGlyph, EntityStyle
from render.particles import DEFAULT_PARTICLE_CONFIG, ParticleConfig, ParticleGlyph, ParticleLayer
from render.quality import QualityLevel, QualityPreset
from render.styles import DEFAULT_FLOW_STYLE, FlowStyle
from render.transitions import TransitionGroup
from services.performance import PerformanceGovernor, PerformanceMode
from services.viewport import DEFAULT_VIEWPORT_CONFIG, ViewportConfig, ViewportController, ViewportTransform
from simulation.config import DEFAULT as DEFAULT_LAYOUT_CONFIG
from simulation.config import LayoutConfig
from simulation.engine import LayoutSimulation
from simulation.positions import PositionStore
from simulation.snapshot import FrameSnapshot

logger = logging.getLogger(__name__)

CLICK_TOLERANCE_PX = 3.0


@dataclass
class RenderFrame:
    """Everything the client needs to draw one animation tick."""

    index: int
    time: float
    hour: int
    playing: bool
    topology_key: str
    filter_key: str
    rebuilt: bool
    alpha: float
    settled: bool
    quality: QualityLevel
    fps: float | None
    viewport: ViewportTransform
    zoom_enabled: bool
    connections: list[ConnectionGlyph]
    particles: list[ParticleGlyph]
    entities: list[EntityGlyph]
    tooltip: TooltipState | None
    selected: str | None
    panel: DetailPanelContent | None
    kpis: CommunityKpis


type FrameListener = Callable[[RenderFrame], None]


@dataclass
class _Press:
    entity_id: str | None
    x: float
    y: float
    dragging: bool
    moved: bool = False


class GraphView:
    def __init__(
        self,
        dataset: CommunityDataset,
        criteria: FilterCriteria | None = None,
        hour: int = 0,
        dimensions: tuple[float, float] = (960.0, 720.0),
        dark: bool = False,
        scheduler: Scheduler | None = None,
        governor: PerformanceGovernor | None = None,
        layout_config: LayoutConfig = DEFAULT_LAYOUT_CONFIG,
        flow_style: FlowStyle = DEFAULT_FLOW_STYLE,
        entity_style: EntityStyle = DEFAULT_ENTITY_STYLE,
        particle_config: ParticleConfig = DEFAULT_PARTICLE_CONFIG,
        tooltip_config: TooltipConfig = DEFAULT_TOOLTIP_CONFIG,
        viewport_config: ViewportConfig = DEFAULT_VIEWPORT_CONFIG,
        kpi_scope: KpiScope = KpiScope.COMMUNITY,
    ) -> None:
        self._dataset = dataset
        self._categories: dict[str, EntityCategory] = {e.id: entity_category(e) for e in dataset.entities}
        self._kpi_scope = kpi_scope
        self._viewport_config = viewport_config

        self._cache = RenderCache()
        self._transitions = TransitionGroup()
        self._simulation = LayoutSimulation(PositionStore(config=layout_config), layout_config, dimensions)
        self._connections = ConnectionsLayer(self._cache, self._transitions, flow_style)
        self._particles = ParticleLayer(particle_config)
        self._entities = EntitiesLayer(self._cache, self._transitions, entity_style)
        self._overlay = TooltipOverlay()
        self._coordinator = InteractionCoordinator(
            self._overlay,
            scheduler or AsyncioScheduler(),
            tooltip_config,
            dark=dark,
            on_select=self._on_select,
        )
        self._governor = governor or PerformanceGovernor()
        self._unsubscribe_governor = self._governor.subscribe(self._on_preset)
        self._viewport = ViewportController(dimensions, viewport_config)

        self._criteria: FilterCriteria | None = None
        self._hour = 0
        self._projection: Projection | None = None
        self._snapshot = FrameSnapshot.empty()
        self._panel: DetailPanelContent | None = None
        self._hover: tuple[str, str | tuple[str, str]] | None = None
        self._press: _Press | None = None

        self._pending_criteria: FilterCriteria | None = criteria or default_criteria(dataset)
        self._pending_hour: int | None = hour
        self._pending_playing: bool | None = None
        self._pending_dimensions: tuple[float, float] | None = None
        self._layers_dirty = True

        self._listeners: list[FrameListener] = []
        self._frame_index = 0
        self._first_frame_at: float | None = None
        self._auto_fit_done = False
        self._torn_down = False

    # ---------------------------------------------------------------------------
    # Queries
    # ---------------------------------------------------------------------------

    @property
    def projection(self) -> Projection | None:
        return self._projection

    @property
    def criteria(self) -> FilterCriteria | None:
        return self._criteria

    @property
    def hour(self) -> int:
        return self._hour

    @property
    def simulation(self) -> LayoutSimulation:
        return self._simulation

    @property
    def viewport(self) -> ViewportController:
        return self._viewport

    @property
    def governor(self) -> PerformanceGovernor:
        return self._governor

    @property
    def coordinator(self) -> InteractionCoordinator:
        return self._coordinator

    @property
    def preset(self) -> QualityPreset:
        return self._governor.preset

    @property
    def torn_down(self) -> bool:
        return self._torn_down

    def subscribe(self, listener: FrameListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ---------------------------------------------------------------------------
    # Controls (coalesced until the next frame)
    # ---------------------------------------------------------------------------

    def set_filters(self, criteria: FilterCriteria) -> None:
        if not self._torn_down:
            self._pending_criteria = criteria

    def set_hour(self, hour: int) -> None:
        if not self._torn_down:
            self._pending_hour = min(max(hour, 0), HOURS_IN_WINDOW - 1)

    def set_playing(self, playing: bool) -> None:
        if not self._torn_down:
            self._pending_playing = playing

    def set_dimensions(self, width: float, height: float) -> None:
        if not self._torn_down and width > 0 and height > 0:
            self._pending_dimensions = (width, height)

    def set_dark(self, dark: bool) -> None:
        self._coordinator.set_dark(dark)

    def set_performance_mode(self, mode: PerformanceMode) -> None:
        if not self._torn_down:
            self._governor.set_mode(mode)

    def report_fps(self, fps: float) -> None:
        if not self._torn_down:
            self._governor.add_sample(fps)

    # ---------------------------------------------------------------------------
    # Frame loop
    # ---------------------------------------------------------------------------

    def _apply_pending(self, now: float) -> bool:
        """Apply coalesced controls. Returns True if the simulation was rebuilt."""
        rebuilt = False
        if self._pending_dimensions is not None:
            width, height = self._pending_dimensions
            self._simulation.set_dimensions(width, height)
            self._viewport.set_dimensions(width, height)
            self._pending_dimensions = None

        criteria = self._pending_criteria or self._criteria
        hour = self._hour if self._pending_hour is None else self._pending_hour
        self._pending_criteria = None
        self._pending_hour = None
        if criteria is not None and (self._projection is None or criteria != self._criteria or hour != self._hour):
            projection = project(self._dataset, criteria, hour, self._kpi_scope)
            rebuilt = self._simulation.sync(projection.entity_ids, projection.links, projection.topology_key)
            self._criteria, self._hour, self._projection = criteria, hour, projection
            self._coordinator.drop_selection_if_hidden(set(projection.entity_ids))
            self._layers_dirty = True

        if self._pending_playing is not None:
            self._particles.set_playing(self._pending_playing, now)
            self._pending_playing = None
        return rebuilt

    def _update_layers(self, now: float) -> None:
        projection = self._projection
        if projection is None:
            return
        preset = self._governor.preset
        self._connections.update(projection.connections, self._categories, projection.hour, preset, now)
        self._particles.update(projection.connections, self._categories, projection.hour, preset, now)
        self._entities.update(projection.entities, projection.connections, projection.hour, preset, now)
        self._entities.set_selected(self._coordinator.selected.id if self._coordinator.selected else None)
        self._transitions.prune(now)
        self._layers_dirty = False

    def advance_frame(self, now: float) -> RenderFrame | None:
        """Produce the next frame, or None once torn down."""
        if self._torn_down:
            return None
        if self._first_frame_at is None:
            self._first_frame_at = now

        rebuilt = self._apply_pending(now)
        self._simulation.step()
        snapshot = self._simulation.snapshot()
        self._snapshot = snapshot

        if self._layers_dirty:
            self._update_layers(now)
        connections = self._connections.render(snapshot, now)
        particles = self._particles.render(snapshot, now)
        entities = self._entities.render(snapshot, now)

        if not self._auto_fit_done and now - self._first_frame_at >= self._viewport_config.auto_fit_delay_s:
            self._auto_fit_done = True
            self._viewport.fit_to_bounds(snapshot.bounds(), now)
        viewport = self._viewport.advance(now)
        self._governor.record_frame(now)

        projection = self._projection
        selected = self._coordinator.selected
        tooltip = self._overlay.state
        if tooltip is not None:
            tooltip = replace(tooltip)  # frames must not share the overlay state
        frame = RenderFrame(
            index=self._frame_index,
            time=now,
            hour=self._hour,
            playing=self._particles.playing,
            topology_key=snapshot.topology_key,
            filter_key=projection.filter_key if projection else "",
            rebuilt=rebuilt,
            alpha=self._simulation.alpha,
            settled=self._simulation.is_settled,
            quality=self._governor.level,
            fps=self._governor.fps,
            viewport=viewport,
            zoom_enabled=self._viewport.interactive,
            connections=connections,
            particles=particles,
            entities=entities,
            tooltip=tooltip,
            selected=selected.id if selected else None,
            panel=self._panel,
            kpis=projection.kpis if projection else CommunityKpis(),
        )
        self._frame_index += 1
        for listener in list(self._listeners):
            listener(frame)
        return frame

    def fit_to_view(self, now: float) -> bool:
        if self._torn_down:
            return False
        return self._viewport.fit_to_bounds(self._snapshot.bounds(), now)

    # ---------------------------------------------------------------------------
    # Pointer and gestures (screen coordinates)
    # ---------------------------------------------------------------------------

    def _hit(self, x: float, y: float) -> tuple[Entity | None, Connection | None]:
        wx, wy = self._viewport.screen_to_world((x, y))
        entity = self._entities.hit_test(self._snapshot, wx, wy)
        if entity is not None:
            return entity, None
        return None, self._connections.hit_test(self._snapshot, wx, wy)

    def pointer_move(self, x: float, y: float) -> None:
        if self._torn_down:
            return
        press = self._press
        if press is not None:
            if math.hypot(x - press.x, y - press.y) > CLICK_TOLERANCE_PX:
                press.moved = True
            if press.dragging and press.entity_id is not None:
                self._simulation.drag(press.entity_id, *self._viewport.screen_to_world((x, y)))
                self._coordinator.move((x, y))
                return

        entity, connection = self._hit(x, y)
        detailed = self._governor.preset.enable_complex_tooltips
        if entity is not None:
            target = ("entity", entity.id)
            if self._hover != target:
                self._hover = target
                self._entities.set_hovered(entity.id)
                self._connections.set_hovered(None)
                self._coordinator.hover_entity(entity, (x, y), detailed)
            else:
                self._coordinator.move((x, y))
        elif connection is not None:
            target = ("connection", connection.key)
            if self._hover != target:
                self._hover = target
                self._entities.set_hovered(None)
                self._connections.set_hovered(connection.key)
                self._coordinator.hover_connection(
                    connection,
                    self._dataset.entity(connection.source),
                    self._dataset.entity(connection.target),
                    self._hour,
                    (x, y),
                    detailed,
                )
            else:
                self._coordinator.move((x, y))
        else:
            self.pointer_leave()

    def pointer_leave(self) -> None:
        if self._torn_down or self._hover is None:
            return
        self._hover = None
        self._entities.set_hovered(None)
        self._connections.set_hovered(None)
        self._coordinator.leave()

    def pointer_down(self, x: float, y: float) -> None:
        if self._torn_down:
            return
        entity, _ = self._hit(x, y)
        entity_id = entity.id if entity is not None else None
        dragging = entity_id is not None and self._simulation.drag_start(entity_id)
        self._press = _Press(entity_id=entity_id, x=x, y=y, dragging=dragging)

    def pointer_up(self, x: float, y: float) -> None:
        if self._torn_down or self._press is None:
            return
        press, self._press = self._press, None
        if press.dragging and press.entity_id is not None:
            self._simulation.drag_end(press.entity_id)
        if press.moved:
            return
        if press.entity_id is None:
            self._coordinator.click_background()
            return
        entity = self._entities.entity(press.entity_id)
        if entity is not None:
            self._coordinator.click_entity(entity)

    def zoom(self, factor: float, x: float, y: float) -> bool:
        if self._torn_down:
            return False
        return self._viewport.zoom_at(factor, (x, y))

    def pan(self, dx: float, dy: float) -> bool:
        if self._torn_down:
            return False
        return self._viewport.pan(dx, dy)

    # ---------------------------------------------------------------------------
    # Callbacks and lifecycle
    # ---------------------------------------------------------------------------

    def _on_select(self, entity: Entity | None) -> None:
        self._entities.set_selected(entity.id if entity else None)
        self._panel = detail_panel(entity, self._dataset.connections) if entity is not None else None

    def _on_preset(self, preset: QualityPreset) -> None:
        logger.debug("View switching to %s preset", preset.level)
        self._layers_dirty = True

    def teardown(self) -> None:
        """Stop the physics run, drop particles and remove the tooltip. Idempotent."""
        if self._torn_down:
            return
        self._torn_down = True
        self._simulation.stop()
        self._particles.clear()
        self._connections.clear()
        self._entities.clear()
        self._transitions.cancel_all()
        self._cache.clear()
        self._coordinator.teardown()
        self._unsubscribe_governor()
        self._listeners.clear()
        self._press = None
        self._hover = None
        logger.info("Graph view torn down after %d frames", self._frame_index)
