"""Position store: pinned campus coordinates vs. simulation-owned free positions."""

import math
from collections.abc import Mapping
from dataclasses import dataclass

import numpy as np

from data.campus_layout import PINNED_COORDINATES, SITE_PLAN_HEIGHT, SITE_PLAN_WIDTH
from simulation.config import DEFAULT, LayoutConfig


@dataclass(frozen=True)
class Pinned:
    x: float
    y: float


@dataclass(frozen=True)
class Free:
    pass


type ResolvedPosition = Pinned | Free

FREE = Free()


def rotate_point(x: float, y: float, degrees: float, cx: float, cy: float) -> tuple[float, float]:
    """Rotate (x, y) around (cx, cy); positive angles are clockwise on screen."""
    if degrees % 360 == 0:
        return (x, y)
    radians = math.radians(degrees)
    cos, sin = math.cos(radians), math.sin(radians)
    dx, dy = x - cx, y - cy
    return (dx * cos - dy * sin + cx, dx * sin + dy * cos + cy)


def transform_table(
    table: Mapping[str, tuple[float, float]],
    scale: float,
    rotation_deg: float,
    image_size: tuple[float, float] = (SITE_PLAN_WIDTH, SITE_PLAN_HEIGHT),
) -> dict[str, tuple[float, float]]:
    """Scale every coordinate, then rotate around the centre of the scaled image."""
    cx = image_size[0] * scale / 2
    cy = image_size[1] * scale / 2
    return {
        entity_id: rotate_point(x * scale, y * scale, rotation_deg, cx, cy)
        for entity_id, (x, y) in table.items()
    }


class PositionStore:
    """Resolves entity ids to pinned coordinates; everything else is free."""

    def __init__(
        self,
        table: Mapping[str, tuple[float, float]] = PINNED_COORDINATES,
        config: LayoutConfig = DEFAULT,
    ) -> None:
        self._pinned = transform_table(table, config.pinned_scale, config.pinned_rotation_deg)

    def resolve(self, entity_id: str) -> ResolvedPosition:
        coordinate = self._pinned.get(entity_id)
        if coordinate is None:
            return FREE
        return Pinned(*coordinate)

    def is_pinned(self, entity_id: str) -> bool:
        return entity_id in self._pinned

    def pinned_coordinate(self, entity_id: str) -> tuple[float, float] | None:
        return self._pinned.get(entity_id)


def seed_on_circle(
    index: int,
    count: int,
    center: tuple[float, float],
    radius: float,
) -> tuple[float, float]:
    """Initial position for the ``index``-th of ``count`` entities on a circle around ``center``."""
    angle = index * 2 * math.pi / max(count, 1)
    return (center[0] + math.cos(angle) * radius, center[1] + math.sin(angle) * radius)


def initial_velocities(count: int, jitter: float, rng: np.random.Generator) -> np.ndarray:
    """Small random velocities so seeded entities never start in perfect balance."""
    return rng.uniform(-jitter, jitter, size=(count, 2))
