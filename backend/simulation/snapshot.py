"""Immutable per-step view of the simulation shared by every render layer."""

from collections.abc import Mapping
from dataclasses import dataclass, field

import numpy as np


def _frozen(array: np.ndarray) -> np.ndarray:
    copy = np.array(array, copy=True)
    copy.setflags(write=False)
    return copy


@dataclass(frozen=True, eq=False)
class FrameSnapshot:
    """Positions and link endpoints at one physics step.

    Layers look entities up by integer index into ``positions``; links are
    index pairs into the same array, so all layers read the same coordinates
    for the same step.
    """

    ids: tuple[str, ...]
    positions: np.ndarray  # (n, 2), read-only
    pinned: np.ndarray  # (n,) bool
    dragged: np.ndarray  # (n,) bool
    link_sources: np.ndarray  # (m,) int
    link_targets: np.ndarray  # (m,) int
    alpha: float
    topology_key: str
    generation: int
    index: Mapping[str, int] = field(default_factory=dict)

    @classmethod
    def capture(
        cls,
        ids: list[str],
        positions: np.ndarray,
        pinned: np.ndarray,
        dragged: np.ndarray,
        link_sources: np.ndarray,
        link_targets: np.ndarray,
        alpha: float,
        topology_key: str,
        generation: int,
    ) -> "FrameSnapshot":
        return cls(
            ids=tuple(ids),
            positions=_frozen(positions),
            pinned=_frozen(pinned),
            dragged=_frozen(dragged),
            link_sources=_frozen(link_sources),
            link_targets=_frozen(link_targets),
            alpha=alpha,
            topology_key=topology_key,
            generation=generation,
            index={entity_id: i for i, entity_id in enumerate(ids)},
        )

    @classmethod
    def empty(cls) -> "FrameSnapshot":
        return cls.capture([], np.zeros((0, 2)), np.zeros(0, bool), np.zeros(0, bool),
                           np.zeros(0, int), np.zeros(0, int), 0.0, "", 0)

    def __len__(self) -> int:
        return len(self.ids)

    def position(self, entity_id: str) -> tuple[float, float] | None:
        i = self.index.get(entity_id)
        if i is None:
            return None
        x, y = self.positions[i]
        return (float(x), float(y))

    def link_index(self, source: str, target: str) -> int | None:
        """Index of the link between two entity ids, or None if it is not part of this snapshot."""
        s, t = self.index.get(source), self.index.get(target)
        if s is None or t is None:
            return None
        hits = np.flatnonzero((self.link_sources == s) & (self.link_targets == t))
        return int(hits[0]) if len(hits) else None

    def bounds(self) -> tuple[float, float, float, float] | None:
        """(min_x, min_y, max_x, max_y) over all entities, or None when empty."""
        if len(self.ids) == 0:
            return None
        mins = self.positions.min(axis=0)
        maxs = self.positions.max(axis=0)
        return (float(mins[0]), float(mins[1]), float(maxs[0]), float(maxs[1]))
