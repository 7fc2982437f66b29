"""Connections layer: one arc per visible connection, styled by flow at the current hour."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from core.categories import NEUTRAL_COLOR
from core.models import Connection, EntityCategory
from render.cache import RenderCache
from render.quality import QualityPreset, transition_seconds
from render.styles import (
    DEFAULT_FLOW_STYLE,
    Direction,
    FlowStyle,
    Speed,
    arc_path,
    distance_to_segment,
    flow_direction,
    hover_width,
    link_color,
    link_opacity,
    link_width,
    speed_class,
)
from render.transitions import TransitionGroup, quad_out
from simulation.snapshot import FrameSnapshot

logger = logging.getLogger(__name__)

LAYER = "connections"


@dataclass(frozen=True)
class ConnectionGlyph:
    source: str
    target: str
    path: str
    x1: float
    y1: float
    x2: float
    y2: float
    flow: float  # signed, current hour
    width: float
    opacity: float
    color: str
    direction: Direction
    speed: Speed
    highlighted: bool  # drawn with flow styling rather than as a background line
    hovered: bool
    cursor: str


@dataclass(frozen=True)
class _LinkStyle:
    flow: float
    width: float
    opacity: float
    color: str
    direction: Direction
    speed: Speed
    highlighted: bool


def structure_key(connections: list[Connection]) -> str:
    return ",".join(sorted(f"{c.source}-{c.target}" for c in connections))


def _tween_target(key: tuple[str, str], attribute: str) -> str:
    return f"link:{key[0]}->{key[1]}:{attribute}"


class ConnectionsLayer:
    """Owns connection styling; reads positions from the frame snapshot only."""

    def __init__(self, cache: RenderCache, transitions: TransitionGroup, style: FlowStyle = DEFAULT_FLOW_STYLE) -> None:
        self._cache = cache
        self._transitions = transitions
        self._style = style
        self._connections: list[Connection] = []
        self._styles: dict[tuple[str, str], _LinkStyle] = {}
        self._structure_key = ""
        self._hovered: tuple[str, str] | None = None
        self.rebuilds = 0
        self.restyles = 0

    @property
    def connections(self) -> list[Connection]:
        return list(self._connections)

    def update(
        self,
        connections: list[Connection],
        categories: Mapping[str, EntityCategory],
        hour: int,
        preset: QualityPreset,
        now: float,
    ) -> bool:
        """Restyle for a new hour or connection set. Returns True on a structural rebuild."""
        key = structure_key(connections)
        rebuilt = self._cache.structure_changed(LAYER, key)
        targets = self._target_styles(connections, categories, hour, preset)

        if rebuilt:
            cancelled = self._transitions.cancel_stale(key, prefix="link:")
            self.rebuilds += 1
            logger.debug("Connections rebuilt: %d links, %d stale tweens cancelled", len(connections), cancelled)
            duration = 0.0
        else:
            self.restyles += 1
            duration = transition_seconds(preset, self._style.restyle_s)

        for link_key, new in targets.items():
            old = self._styles.get(link_key, new)
            for attribute in ("width", "opacity"):
                self._transitions.start(
                    _tween_target(link_key, attribute),
                    getattr(old, attribute),
                    getattr(new, attribute),
                    now,
                    duration,
                    quad_out,
                    key,
                )

        self._connections = list(connections)
        self._styles = targets
        self._structure_key = key
        if self._hovered is not None and self._hovered not in targets:
            self._hovered = None
        return rebuilt

    def _target_styles(
        self,
        connections: list[Connection],
        categories: Mapping[str, EntityCategory],
        hour: int,
        preset: QualityPreset,
    ) -> dict[tuple[str, str], _LinkStyle]:
        highlighted = {c.key for c in connections}
        if preset.enable_virtualization and len(connections) > preset.max_visible_links:
            ranked = sorted(connections, key=lambda c: c.magnitude_at(hour), reverse=True)
            highlighted = {c.key for c in ranked[: preset.max_visible_links]}

        styles: dict[tuple[str, str], _LinkStyle] = {}
        for c in connections:
            value = c.flow_at(hour)
            magnitude = abs(value)
            if c.key in highlighted:
                styles[c.key] = _LinkStyle(
                    flow=value,
                    width=link_width(magnitude, self._style),
                    opacity=link_opacity(magnitude, self._style),
                    color=link_color(categories.get(c.source), magnitude, self._style),
                    direction=flow_direction(value),
                    speed=speed_class(magnitude, self._style),
                    highlighted=True,
                )
            else:
                styles[c.key] = _LinkStyle(
                    flow=value,
                    width=self._style.zero_width,
                    opacity=self._style.zero_opacity,
                    color=NEUTRAL_COLOR,
                    direction=Direction.IDLE,
                    speed=Speed.SLOW,
                    highlighted=False,
                )
        return styles

    def set_hovered(self, key: tuple[str, str] | None) -> None:
        self._hovered = key if key in self._styles else None

    def render(self, snapshot: FrameSnapshot, now: float) -> list[ConnectionGlyph]:
        glyphs: list[ConnectionGlyph] = []
        for c in self._connections:
            source = snapshot.position(c.source)
            target = snapshot.position(c.target)
            style = self._styles.get(c.key)
            if source is None or target is None or style is None:
                continue
            width = self._transitions.value(_tween_target(c.key, "width"), now, style.width)
            opacity = self._transitions.value(_tween_target(c.key, "opacity"), now, style.opacity)
            hovered = c.key == self._hovered and style.flow != 0
            if hovered:
                width = hover_width(width, self._style)
            glyphs.append(
                ConnectionGlyph(
                    source=c.source,
                    target=c.target,
                    path=arc_path(*source, *target),
                    x1=source[0],
                    y1=source[1],
                    x2=target[0],
                    y2=target[1],
                    flow=style.flow,
                    width=width,
                    opacity=opacity,
                    color=style.color,
                    direction=style.direction,
                    speed=style.speed,
                    highlighted=style.highlighted,
                    hovered=hovered,
                    cursor="pointer" if style.flow != 0 else "default",
                )
            )
        return glyphs

    def hit_test(self, snapshot: FrameSnapshot, x: float, y: float, tolerance: float = 6.0) -> Connection | None:
        """Nearest connection with nonzero flow under the point, in world coordinates."""
        best: Connection | None = None
        best_distance = float("inf")
        for c in self._connections:
            style = self._styles.get(c.key)
            if style is None or style.flow == 0:
                continue
            source = snapshot.position(c.source)
            target = snapshot.position(c.target)
            if source is None or target is None:
                continue
            distance = distance_to_segment(x, y, *source, *target)
            if distance <= max(tolerance, style.width / 2) and distance < best_distance:
                best, best_distance = c, distance
        return best

    def clear(self) -> None:
        self._connections = []
        self._styles = {}
        self._hovered = None
        self._transitions.cancel_prefix("link:")
