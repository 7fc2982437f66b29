"""Viewport controller: bounded zoom, pan and the animated fit-to-bounds."""

import logging
from dataclasses import dataclass

from render.transitions import Easing, quad_out

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ViewportTransform:
    """Screen = world * k + (x, y)."""

    x: float = 0.0
    y: float = 0.0
    k: float = 1.0

    def apply(self, point: tuple[float, float]) -> tuple[float, float]:
        return (point[0] * self.k + self.x, point[1] * self.k + self.y)

    def invert(self, point: tuple[float, float]) -> tuple[float, float]:
        return ((point[0] - self.x) / self.k, (point[1] - self.y) / self.k)


@dataclass(frozen=True)
class ViewportConfig:
    scale_min: float = 0.5
    scale_max: float = 3.0
    initial_offset_fraction: float = 0.15
    initial_scale: float = 0.6
    fit_padding: float = 120.0
    fit_fraction: float = 0.8
    max_fit_scale: float = 0.7
    fit_duration_s: float = 1.5
    auto_fit_delay_s: float = 1.0


DEFAULT_VIEWPORT_CONFIG = ViewportConfig()


@dataclass
class _FitAnimation:
    start: ViewportTransform
    end: ViewportTransform
    started_at: float
    duration: float
    easing: Easing

    def at(self, now: float) -> tuple[ViewportTransform, bool]:
        t = 1.0 if self.duration <= 0 else min(1.0, max(0.0, (now - self.started_at) / self.duration))
        e = self.easing(t)
        transform = ViewportTransform(
            x=self.start.x + (self.end.x - self.start.x) * e,
            y=self.start.y + (self.end.y - self.start.y) * e,
            k=self.start.k + (self.end.k - self.start.k) * e,
        )
        return transform, t >= 1.0


class ViewportController:
    def __init__(
        self,
        dimensions: tuple[float, float],
        config: ViewportConfig = DEFAULT_VIEWPORT_CONFIG,
    ) -> None:
        self._config = config
        self._width, self._height = dimensions
        self._transform = ViewportTransform(
            x=self._width * config.initial_offset_fraction,
            y=self._height * config.initial_offset_fraction,
            k=config.initial_scale,
        )
        self._animation: _FitAnimation | None = None
        self._interactive = True
        self.handler_installs = 1

    @property
    def transform(self) -> ViewportTransform:
        return self._transform

    @property
    def dimensions(self) -> tuple[float, float]:
        return (self._width, self._height)

    @property
    def interactive(self) -> bool:
        """False while a fit animation owns the transform."""
        return self._interactive

    @property
    def animating(self) -> bool:
        return self._animation is not None

    def set_dimensions(self, width: float, height: float) -> None:
        self._width, self._height = width, height

    def _clamp(self, k: float) -> float:
        return min(self._config.scale_max, max(self._config.scale_min, k))

    # ---------------------------------------------------------------------------
    # Gestures
    # ---------------------------------------------------------------------------

    def zoom_at(self, factor: float, anchor: tuple[float, float]) -> bool:
        """Scale by ``factor`` keeping the screen point ``anchor`` fixed."""
        if not self._interactive or factor <= 0:
            return False
        k = self._clamp(self._transform.k * factor)
        wx, wy = self._transform.invert(anchor)
        self._transform = ViewportTransform(x=anchor[0] - wx * k, y=anchor[1] - wy * k, k=k)
        return True

    def pan(self, dx: float, dy: float) -> bool:
        if not self._interactive:
            return False
        t = self._transform
        self._transform = ViewportTransform(x=t.x + dx, y=t.y + dy, k=t.k)
        return True

    def screen_to_world(self, point: tuple[float, float]) -> tuple[float, float]:
        return self._transform.invert(point)

    def world_to_screen(self, point: tuple[float, float]) -> tuple[float, float]:
        return self._transform.apply(point)

    # ---------------------------------------------------------------------------
    # Fit to bounds
    # ---------------------------------------------------------------------------

    def fit_transform(self, bounds: tuple[float, float, float, float]) -> ViewportTransform:
        """Transform that centres ``(min_x, min_y, max_x, max_y)`` plus padding."""
        padding = self._config.fit_padding
        min_x, min_y = bounds[0] - padding, bounds[1] - padding
        graph_width = bounds[2] + padding - min_x
        graph_height = bounds[3] + padding - min_y
        scale = min(
            self._width * self._config.fit_fraction / graph_width,
            self._height * self._config.fit_fraction / graph_height,
            self._config.max_fit_scale,
        )
        return ViewportTransform(
            x=(self._width - graph_width * scale) / 2 - min_x * scale,
            y=(self._height - graph_height * scale) / 2 - min_y * scale,
            k=scale,
        )

    def fit_to_bounds(self, bounds: tuple[float, float, float, float] | None, now: float) -> bool:
        if bounds is None:
            return False
        target = self.fit_transform(bounds)
        self._animation = _FitAnimation(
            start=self._transform,
            end=target,
            started_at=now,
            duration=self._config.fit_duration_s,
            easing=quad_out,
        )
        self._interactive = False
        logger.debug("Fit to bounds %s -> %s", bounds, target)
        return True

    def advance(self, now: float) -> ViewportTransform:
        if self._animation is None:
            return self._transform
        self._transform, done = self._animation.at(now)
        if done:
            self._animation = None
            self._interactive = True
            self.handler_installs += 1
        return self._transform
