"""Entities layer: markers sized and highlighted by their flow at the current hour."""

import logging
import math
from dataclasses import dataclass

from core.categories import feature_badges, power_label, traits_for
from core.models import Connection, Entity, EntityCategory, display_name, entity_category
from pipeline.flows import ACTIVE_FLOW_THRESHOLD, flow_totals_by_entity
from render.cache import RenderCache
from render.quality import QualityPreset, transition_seconds
from render.styles import brighten
from render.transitions import TransitionGroup, elastic_out
from simulation.snapshot import FrameSnapshot

logger = logging.getLogger(__name__)

LAYER = "entities"


@dataclass(frozen=True)
class EntityStyle:
    base_radius: float = 30.0
    growth_per_flow: float = 0.05  # radius fraction per kWh
    max_growth: float = 0.2
    aura_scale: float = 1.25
    resize_s: float = 0.8
    elastic_period: float = 0.3
    active_threshold: float = ACTIVE_FLOW_THRESHOLD


DEFAULT_ENTITY_STYLE = EntityStyle()


@dataclass(frozen=True)
class EntityGlyph:
    id: str
    category: EntityCategory
    x: float
    y: float
    radius: float
    aura_radius: float
    fill: str
    stroke: str
    active: bool  # pulse while any connection carries flow
    selected: bool
    hovered: bool
    pinned: bool
    dragging: bool
    draggable: bool
    cursor: str
    label: str
    label_color: str
    inner_label: str
    power_label: str
    type_label: str
    badges: tuple[str, ...]
    icon: str | None


def entity_radius(total_flow: float, style: EntityStyle = DEFAULT_ENTITY_STYLE) -> float:
    return style.base_radius * (1 + min(style.max_growth, total_flow * style.growth_per_flow))


def _tween_target(entity_id: str) -> str:
    return f"entity:{entity_id}:radius"


class EntitiesLayer:
    def __init__(
        self,
        cache: RenderCache,
        transitions: TransitionGroup,
        style: EntityStyle = DEFAULT_ENTITY_STYLE,
    ) -> None:
        self._cache = cache
        self._transitions = transitions
        self._style = style
        self._easing = elastic_out(style.elastic_period)
        self._entities: list[Entity] = []
        self._by_id: dict[str, Entity] = {}
        self._radius: dict[str, float] = {}
        self._active: set[str] = set()
        self._icons = True
        self._selected: str | None = None
        self._hovered: str | None = None
        self.rebuilds = 0

    @property
    def selected(self) -> str | None:
        return self._selected

    def entity(self, entity_id: str) -> Entity | None:
        return self._by_id.get(entity_id)

    def update(
        self,
        entities: list[Entity],
        connections: list[Connection],
        hour: int,
        preset: QualityPreset,
        now: float,
    ) -> bool:
        key = ",".join(sorted(e.id for e in entities))
        rebuilt = self._cache.structure_changed(LAYER, key)
        if rebuilt:
            self._transitions.cancel_stale(key, prefix="entity:")
            self.rebuilds += 1
        duration = 0.0 if rebuilt else transition_seconds(preset, self._style.resize_s)

        totals = flow_totals_by_entity(connections, hour)
        radius: dict[str, float] = {}
        active: set[str] = set()
        for e in entities:
            radius[e.id] = entity_radius(totals.get(e.id, 0.0), self._style)
            self._transitions.start(
                _tween_target(e.id),
                self._radius.get(e.id, radius[e.id]),
                radius[e.id],
                now,
                duration,
                self._easing,
                key,
            )
        for c in connections:
            if c.magnitude_at(hour) >= self._style.active_threshold:
                active.update((c.source, c.target))

        self._entities = list(entities)
        self._by_id = {e.id: e for e in entities}
        self._radius = radius
        self._active = active
        self._icons = preset.enable_node_icons
        if self._selected not in self._by_id:
            self._selected = None
        if self._hovered not in self._by_id:
            self._hovered = None
        return rebuilt

    def set_selected(self, entity_id: str | None) -> None:
        self._selected = entity_id if entity_id in self._by_id else None

    def set_hovered(self, entity_id: str | None) -> None:
        self._hovered = entity_id if entity_id in self._by_id else None

    def render(self, snapshot: FrameSnapshot, now: float) -> list[EntityGlyph]:
        glyphs: list[EntityGlyph] = []
        for e in self._entities:
            i = snapshot.index.get(e.id)
            if i is None:
                continue
            x, y = snapshot.positions[i]
            pinned = bool(snapshot.pinned[i])
            radius = self._transitions.value(_tween_target(e.id), now, self._radius[e.id])
            category = entity_category(e)
            traits = traits_for(e)
            name = display_name(e)
            glyphs.append(
                EntityGlyph(
                    id=e.id,
                    category=category,
                    x=float(x),
                    y=float(y),
                    radius=radius,
                    aura_radius=radius * self._style.aura_scale,
                    fill=traits.color,
                    stroke=brighten(traits.color, 0.3),
                    active=e.id in self._active,
                    selected=e.id == self._selected,
                    hovered=e.id == self._hovered,
                    pinned=pinned,
                    dragging=bool(snapshot.dragged[i]),
                    draggable=not pinned,
                    cursor="not-allowed" if pinned else "pointer",
                    label=name,
                    label_color="#333" if category == EntityCategory.SOLAR else "#fff",
                    inner_label=name[:2],
                    power_label=power_label(e),
                    type_label=traits.type_label(e),
                    badges=tuple(feature_badges(e)),
                    icon=self._cache.icon_markup(category) if self._icons else None,
                )
            )
        return glyphs

    def hit_test(self, snapshot: FrameSnapshot, x: float, y: float) -> Entity | None:
        """Closest entity whose marker contains the point, in world coordinates."""
        best: Entity | None = None
        best_distance = math.inf
        for e in self._entities:
            position = snapshot.position(e.id)
            if position is None:
                continue
            distance = math.hypot(x - position[0], y - position[1])
            if distance <= self._radius[e.id] and distance < best_distance:
                best, best_distance = e, distance
        return best

    def clear(self) -> None:
        self._entities = []
        self._by_id = {}
        self._radius = {}
        self._active = set()
        self._selected = None
        self._hovered = None
        self._transitions.cancel_prefix("entity:")
