"""Flow-particle layer: small markers travelling along the busiest connections.

Particles are planned once per (hour, connection set, preset) and their
position is a pure function of time and the current snapshot, so they never
write back into the simulation.
"""

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass

from core.categories import CATEGORY_TRAITS, NEUTRAL_COLOR
from core.models import Connection, EntityCategory
from render.quality import QualityPreset
from simulation.snapshot import FrameSnapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParticleConfig:
    min_flow: float = 0.05  # kWh; weaker connections carry no particles
    max_per_link: int = 3
    per_unit_flow: float = 2.0  # particles per kWh before clamping
    base_radius: float = 1.0
    radius_per_flow: float = 1.5
    max_radius: float = 4.0
    reference_node_radius: float = 32.0
    reference_scale: float = 50.0
    base_duration_s: float = 3.0
    duration_per_flow_s: float = 0.5
    min_duration_s: float = 1.0
    stagger_s: float = 0.2
    endpoint_inset: float = 35.0  # start and end on the entity rim
    opacity: float = 0.8


DEFAULT_PARTICLE_CONFIG = ParticleConfig()


@dataclass(frozen=True)
class ParticleSpec:
    source: str
    target: str
    index: int
    count: int
    radius: float
    duration: float  # seconds per traversal
    delay: float  # seconds before the first appearance
    color: str
    reverse: bool


@dataclass(frozen=True)
class ParticleGlyph:
    source: str
    target: str
    index: int
    x: float
    y: float
    radius: float
    color: str
    opacity: float


def particle_count(magnitude: float, config: ParticleConfig = DEFAULT_PARTICLE_CONFIG) -> int:
    return min(config.max_per_link, max(1, math.floor(magnitude * config.per_unit_flow)))


def particle_radius(magnitude: float, config: ParticleConfig = DEFAULT_PARTICLE_CONFIG) -> float:
    flow_based = min(config.max_radius, config.base_radius + magnitude * config.radius_per_flow)
    return min(config.max_radius, flow_based * (config.reference_node_radius / config.reference_scale))


def travel_duration(magnitude: float, config: ParticleConfig = DEFAULT_PARTICLE_CONFIG) -> float:
    """Seconds per traversal; stronger flow travels faster."""
    return max(config.min_duration_s, config.base_duration_s - magnitude * config.duration_per_flow_s)


def plan_particles(
    connections: list[Connection],
    categories: Mapping[str, EntityCategory],
    hour: int,
    max_links: int,
    config: ParticleConfig = DEFAULT_PARTICLE_CONFIG,
) -> list[ParticleSpec]:
    """Particles for the ``max_links`` connections with the largest |flow| above the minimum."""
    candidates = [c for c in connections if c.magnitude_at(hour) > config.min_flow]
    candidates.sort(key=lambda c: c.magnitude_at(hour), reverse=True)

    specs: list[ParticleSpec] = []
    for c in candidates[:max_links]:
        value = c.flow_at(hour)
        magnitude = abs(value)
        count = particle_count(magnitude, config)
        category = categories.get(c.source)
        color = CATEGORY_TRAITS[category].color if category is not None else NEUTRAL_COLOR
        for i in range(count):
            specs.append(
                ParticleSpec(
                    source=c.source,
                    target=c.target,
                    index=i,
                    count=count,
                    radius=particle_radius(magnitude, config),
                    duration=travel_duration(magnitude, config),
                    delay=i * config.stagger_s,
                    color=color,
                    reverse=value < 0,
                )
            )
    return specs


class ParticleLayer:
    """Holds the active particle plan; empty whenever the timeline is paused."""

    def __init__(self, config: ParticleConfig = DEFAULT_PARTICLE_CONFIG) -> None:
        self._config = config
        self._specs: list[ParticleSpec] = []
        self._started_at = 0.0
        self._playing = False
        self._inputs: tuple[list[Connection], Mapping[str, EntityCategory], int, QualityPreset] | None = None

    @property
    def playing(self) -> bool:
        return self._playing

    @property
    def specs(self) -> list[ParticleSpec]:
        return list(self._specs)

    def __len__(self) -> int:
        return len(self._specs)

    def update(
        self,
        connections: list[Connection],
        categories: Mapping[str, EntityCategory],
        hour: int,
        preset: QualityPreset,
        now: float,
    ) -> None:
        self._inputs = (list(connections), categories, hour, preset)
        self._replan(now)

    def set_playing(self, playing: bool, now: float) -> None:
        if playing == self._playing:
            return
        self._playing = playing
        if playing:
            self._replan(now)
        else:
            self.clear()

    def _replan(self, now: float) -> None:
        self._specs = []
        if not self._playing or self._inputs is None:
            return
        connections, categories, hour, preset = self._inputs
        if not preset.enable_particles or preset.max_particles <= 0:
            return
        self._specs = plan_particles(connections, categories, hour, preset.max_particles, self._config)
        self._started_at = now
        logger.debug("Planned %d particles at hour %d", len(self._specs), hour)

    def render(self, snapshot: FrameSnapshot, now: float) -> list[ParticleGlyph]:
        glyphs: list[ParticleGlyph] = []
        inset = self._config.endpoint_inset
        for spec in self._specs:
            elapsed = now - self._started_at - spec.delay
            if elapsed < 0:
                continue
            source = snapshot.position(spec.source)
            target = snapshot.position(spec.target)
            if source is None or target is None:
                continue
            start, end = (target, source) if spec.reverse else (source, target)
            dx, dy = end[0] - start[0], end[1] - start[1]
            distance = math.hypot(dx, dy)
            if distance == 0:
                continue
            ux, uy = dx / distance, dy / distance
            sx, sy = start[0] + ux * inset, start[1] + uy * inset
            ex, ey = end[0] - ux * inset, end[1] - uy * inset

            progress = (elapsed / spec.duration + spec.index / spec.count) % 1.0
            glyphs.append(
                ParticleGlyph(
                    source=spec.source,
                    target=spec.target,
                    index=spec.index,
                    x=sx + (ex - sx) * progress,
                    y=sy + (ey - sy) * progress,
                    radius=spec.radius,
                    color=spec.color,
                    opacity=self._config.opacity,
                )
            )
        return glyphs

    def clear(self) -> None:
        """Drop every in-flight particle."""
        self._specs = []
