"""Quality presets: bundles of rendering-cost knobs selected by measured frame rate."""

from dataclasses import dataclass
from enum import StrEnum


class QualityLevel(StrEnum):
    MINIMAL = "minimal"
    BALANCED = "balanced"
    FULL = "full"


@dataclass(frozen=True)
class QualityPreset:
    level: QualityLevel
    enable_particles: bool
    enable_complex_tooltips: bool
    enable_node_icons: bool
    enable_smooth_animations: bool
    max_particles: int  # links that carry particles
    max_visible_links: int  # links drawn with flow styling when virtualising
    animation_throttle_ms: float
    enable_virtualization: bool


PRESETS: dict[QualityLevel, QualityPreset] = {
    QualityLevel.MINIMAL: QualityPreset(
        level=QualityLevel.MINIMAL,
        enable_particles=False,
        enable_complex_tooltips=False,
        enable_node_icons=True,
        enable_smooth_animations=False,
        max_particles=0,
        max_visible_links=20,
        animation_throttle_ms=100.0,
        enable_virtualization=True,
    ),
    QualityLevel.BALANCED: QualityPreset(
        level=QualityLevel.BALANCED,
        enable_particles=True,
        enable_complex_tooltips=True,
        enable_node_icons=True,
        enable_smooth_animations=True,
        max_particles=8,
        max_visible_links=50,
        animation_throttle_ms=50.0,
        enable_virtualization=False,
    ),
    QualityLevel.FULL: QualityPreset(
        level=QualityLevel.FULL,
        enable_particles=True,
        enable_complex_tooltips=True,
        enable_node_icons=True,
        enable_smooth_animations=True,
        max_particles=15,
        max_visible_links=100,
        animation_throttle_ms=16.0,
        enable_virtualization=False,
    ),
}


def transition_seconds(preset: QualityPreset, seconds: float) -> float:
    """Transition duration under ``preset``; zero when smooth animation is off."""
    return seconds if preset.enable_smooth_animations else 0.0
