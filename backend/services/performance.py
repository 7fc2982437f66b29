"""Performance governor: maps measured frame rate to a quality preset."""

import logging
import os
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

from render.quality import PRESETS, QualityLevel, QualityPreset

logger = logging.getLogger(__name__)


class PerformanceMode(StrEnum):
    AUTO = "auto"
    MINIMAL = "minimal"
    BALANCED = "balanced"
    FULL = "full"


@dataclass(frozen=True)
class GovernorConfig:
    sample_interval_s: float = 1.0
    window: int = 3  # samples in the rolling mean
    minimal_below_fps: float = 20.0
    balanced_below_fps: float = 40.0
    reference_fps: float = 60.0  # display rate the thresholds are written against


DEFAULT_GOVERNOR_CONFIG = GovernorConfig()

type PresetListener = Callable[[QualityPreset], None]


def recommend(fps: float, config: GovernorConfig = DEFAULT_GOVERNOR_CONFIG) -> QualityLevel:
    if fps < config.minimal_below_fps:
        return QualityLevel.MINIMAL
    if fps < config.balanced_below_fps:
        return QualityLevel.BALANCED
    return QualityLevel.FULL


def detect_performance_level(
    cpu_count: int | None = None,
    memory_gb: float | None = None,
    mobile: bool = False,
) -> QualityLevel:
    """Starting preset from host capabilities.

    Unknown core count reads as 2; unknown memory does not constrain.
    """
    cores = cpu_count if cpu_count is not None else (os.cpu_count() or 2)
    if mobile or cores < 4 or (memory_gb is not None and memory_gb < 4):
        return QualityLevel.MINIMAL
    if cores >= 8 and (memory_gb is None or memory_gb >= 8):
        return QualityLevel.FULL
    return QualityLevel.BALANCED


class PerformanceGovernor:
    """Samples FPS once per interval and notifies listeners on preset changes.

    ``record_frame`` counts frames rendered by the view. When the view ticks at
    a fixed ``target_fps``, the measured rate is scaled to the reference display
    rate so a loop keeping pace with its target reads as full speed.
    ``add_sample`` takes an FPS value measured by the client; once one arrives
    the client samples replace the server measurement. In a fixed mode samples
    are still recorded but the preset never moves.
    """

    def __init__(
        self,
        mode: PerformanceMode = PerformanceMode.AUTO,
        config: GovernorConfig = DEFAULT_GOVERNOR_CONFIG,
        initial: QualityLevel | None = None,
        target_fps: float | None = None,
    ) -> None:
        self._config = config
        self._target_fps = target_fps
        self._client_reported = False
        self._mode = mode
        self._samples: deque[float] = deque(maxlen=config.window)
        self._listeners: list[PresetListener] = []
        self._frames = 0
        self._window_start: float | None = None
        if mode == PerformanceMode.AUTO:
            self._level = initial if initial is not None else detect_performance_level()
        else:
            self._level = QualityLevel(mode.value)

    @property
    def mode(self) -> PerformanceMode:
        return self._mode

    @property
    def level(self) -> QualityLevel:
        return self._level

    @property
    def preset(self) -> QualityPreset:
        return PRESETS[self._level]

    @property
    def fps(self) -> float | None:
        """Rolling mean of the recent samples."""
        if not self._samples:
            return None
        return sum(self._samples) / len(self._samples)

    def subscribe(self, listener: PresetListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def record_frame(self, now: float) -> bool:
        """Count one rendered frame; returns True if the preset changed."""
        if self._window_start is None:
            self._window_start = now
            return False
        self._frames += 1
        elapsed = now - self._window_start
        if elapsed < self._config.sample_interval_s:
            return False
        fps = self._frames / elapsed
        self._frames = 0
        self._window_start = now
        if self._client_reported:
            return False
        if self._target_fps:
            fps *= self._config.reference_fps / self._target_fps
        return self._add(fps)

    def add_sample(self, fps: float) -> bool:
        """Record a client-measured FPS value."""
        if fps < 0:
            return False
        if not self._client_reported:
            self._client_reported = True
            self._samples.clear()
        return self._add(fps)

    def _add(self, fps: float) -> bool:
        self._samples.append(fps)
        if self._mode != PerformanceMode.AUTO:
            return False
        return self._set_level(recommend(self.fps, self._config))

    def set_mode(self, mode: PerformanceMode) -> bool:
        self._mode = mode
        if mode == PerformanceMode.AUTO:
            if self.fps is None:
                return False
            return self._set_level(recommend(self.fps, self._config))
        return self._set_level(QualityLevel(mode.value))

    def _set_level(self, level: QualityLevel) -> bool:
        if level == self._level:
            return False
        logger.info("Quality preset %s -> %s (fps %.1f)", self._level, level, self.fps or 0.0)
        self._level = level
        preset = self.preset
        for listener in list(self._listeners):
            listener(preset)
        return True
