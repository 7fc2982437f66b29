"""Force-directed layout simulation.

Two working states: ``BUILDING`` until the first topology arrives, then
``RUNNING``. A new topology key discards the old run and starts a fresh one
at full energy, carrying over the positions of entities that stay visible.
Data updates with the same key only top up the energy so the layout does not
snap. ``STOPPED`` is terminal and turns every operation into a no-op.
"""

import logging
from collections.abc import Iterable
from enum import StrEnum

import numpy as np

from simulation import forces
from simulation.config import DEFAULT, LayoutConfig
from simulation.positions import PositionStore, initial_velocities, seed_on_circle
from simulation.snapshot import FrameSnapshot

logger = logging.getLogger(__name__)


class SimulationState(StrEnum):
    BUILDING = "building"
    RUNNING = "running"
    STOPPED = "stopped"


class LayoutSimulation:
    """Owns the working positions and velocities of every visible entity."""

    def __init__(
        self,
        positions: PositionStore,
        config: LayoutConfig = DEFAULT,
        dimensions: tuple[float, float] = (960.0, 720.0),
    ) -> None:
        self._store = positions
        self._config = config
        self._rng = np.random.default_rng(config.random_seed)
        self._dimensions = dimensions
        self._center = (dimensions[0] / 2, dimensions[1] / 2)

        self.state = SimulationState.BUILDING
        self.alpha = 0.0
        self.alpha_target = 0.0
        self._topology_key: str | None = None
        self._generation = 0

        self._ids: list[str] = []
        self._index: dict[str, int] = {}
        self._pos = np.zeros((0, 2))
        self._vel = np.zeros((0, 2))
        self._pinned = np.zeros(0, dtype=bool)
        self._fixed = np.zeros((0, 2))  # pinned or drag coordinate, valid where _fixed_mask
        self._fixed_mask = np.zeros(0, dtype=bool)
        self._dragging: set[int] = set()

        self._sources = np.zeros(0, dtype=int)
        self._targets = np.zeros(0, dtype=int)
        self._link_strength = np.zeros(0)
        self._link_bias = np.zeros(0)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def topology_key(self) -> str | None:
        return self._topology_key

    @property
    def generation(self) -> int:
        """Incremented on every rebuild."""
        return self._generation

    @property
    def center(self) -> tuple[float, float]:
        return self._center

    @property
    def is_stopped(self) -> bool:
        return self.state == SimulationState.STOPPED

    @property
    def is_settled(self) -> bool:
        return self.alpha < self._config.alpha_min and self.alpha_target <= 0

    def position(self, entity_id: str) -> tuple[float, float] | None:
        i = self._index.get(entity_id)
        if i is None:
            return None
        return (float(self._pos[i, 0]), float(self._pos[i, 1]))

    def positions(self) -> dict[str, tuple[float, float]]:
        return {entity_id: (float(x), float(y)) for entity_id, (x, y) in zip(self._ids, self._pos, strict=True)}

    def snapshot(self) -> FrameSnapshot:
        dragged = np.zeros(len(self._ids), dtype=bool)
        dragged[list(self._dragging)] = True
        return FrameSnapshot.capture(
            self._ids,
            self._pos,
            self._pinned,
            dragged,
            self._sources,
            self._targets,
            self.alpha,
            self._topology_key or "",
            self._generation,
        )

    # ------------------------------------------------------------------
    # Topology and data updates
    # ------------------------------------------------------------------

    def sync(self, entity_ids: list[str], links: Iterable[tuple[str, str]], topology_key: str) -> bool:
        """Rebuild on a new topology key, otherwise swap in the links and top up energy.

        ``links`` are the visible connections; the same key may carry a different
        link set when the minimum-flow threshold prunes connections at an hour.
        Returns True on rebuild.
        """
        if self.is_stopped:
            return False
        if topology_key != self._topology_key:
            self.rebuild(entity_ids, links, topology_key)
            return True
        self._set_links(links)
        self.top_up()
        return False

    def rebuild(self, entity_ids: list[str], links: Iterable[tuple[str, str]], topology_key: str) -> None:
        """Replace the run for a new topology, keeping positions of entities that stay visible."""
        if self.is_stopped:
            return
        cfg = self._config
        previous = {entity_id: i for entity_id, i in self._index.items()}
        old_pos, old_vel = self._pos, self._vel

        n = len(entity_ids)
        self._ids = list(entity_ids)
        self._index = {entity_id: i for i, entity_id in enumerate(self._ids)}
        self._pos = np.zeros((n, 2))
        self._vel = np.zeros((n, 2))
        self._pinned = np.zeros(n, dtype=bool)
        self._fixed = np.zeros((n, 2))
        self._fixed_mask = np.zeros(n, dtype=bool)
        self._dragging = set()

        radius = min(self._dimensions) * cfg.seed_radius_fraction
        jitter = initial_velocities(n, cfg.initial_velocity_jitter, self._rng)
        seeded = 0
        for i, entity_id in enumerate(self._ids):
            pinned = self._store.pinned_coordinate(entity_id)
            if pinned is not None:
                self._pos[i] = pinned
                self._fixed[i] = pinned
                self._pinned[i] = True
                self._fixed_mask[i] = True
            elif entity_id in previous:
                j = previous[entity_id]
                self._pos[i] = old_pos[j]
                self._vel[i] = old_vel[j]
            else:
                self._pos[i] = seed_on_circle(i, n, self._center, radius)
                self._vel[i] = jitter[i]
                seeded += 1

        link_count = self._set_links(links)

        self._topology_key = topology_key
        self._generation += 1
        self.alpha = cfg.alpha_initial
        self.alpha_target = 0.0
        self.state = SimulationState.RUNNING
        logger.info(
            "Layout rebuilt: %d entities (%d pinned, %d seeded), %d links",
            n,
            int(self._pinned.sum()),
            seeded,
            link_count,
        )

    def _set_links(self, links: Iterable[tuple[str, str]]) -> int:
        pairs = [(self._index[s], self._index[t]) for s, t in links if s in self._index and t in self._index]
        self._sources = np.array([s for s, _ in pairs], dtype=int)
        self._targets = np.array([t for _, t in pairs], dtype=int)
        self._link_strength, self._link_bias = forces.link_parameters(len(self._ids), self._sources, self._targets)
        return len(pairs)

    def top_up(self) -> None:
        """Re-energise an existing run after a data update that kept the topology."""
        if self.is_stopped or self.state == SimulationState.BUILDING:
            return
        self.alpha = max(self.alpha, self._config.top_up_alpha)

    def set_dimensions(self, width: float, height: float) -> None:
        """Move the centering target; the current run is kept."""
        if self.is_stopped:
            return
        self._dimensions = (width, height)
        self._center = (width / 2, height / 2)

    # ------------------------------------------------------------------
    # Stepping
    # ------------------------------------------------------------------

    def step(self) -> bool:
        """Advance one physics step. Returns False when nothing moved."""
        if self.is_stopped or len(self._ids) == 0 or self.is_settled:
            return False
        cfg = self._config
        self.alpha += (self.alpha_target - self.alpha) * cfg.alpha_decay

        forces.apply_links(
            self._pos, self._vel, self._sources, self._targets,
            self._link_strength, self._link_bias, cfg.link_distance, self.alpha,
        )
        forces.apply_many_body(self._pos, self._vel, cfg.charge_strength, self.alpha, cfg.charge_distance_min)
        forces.apply_centering(self._pos, self._vel, self._center, cfg.center_strength, self.alpha)
        forces.apply_collisions(self._pos, self._vel, cfg.collide_radius, cfg.collide_strength)

        free = ~self._fixed_mask
        self._vel[free] *= 1 - cfg.velocity_decay
        self._pos[free] += self._vel[free]
        self._pos[self._fixed_mask] = self._fixed[self._fixed_mask]
        self._vel[self._fixed_mask] = 0.0
        return True

    def settle(self, max_steps: int = 1000) -> int:
        """Step until the run settles; returns the number of steps taken."""
        steps = 0
        while steps < max_steps and self.step():
            steps += 1
        return steps

    # ------------------------------------------------------------------
    # Drag
    # ------------------------------------------------------------------

    def drag_start(self, entity_id: str) -> bool:
        """Promote a free entity to a fixed point. Pinned and unknown entities are ignored."""
        i = self._index.get(entity_id)
        if self.is_stopped or i is None or self._pinned[i]:
            return False
        if not self._dragging:
            self.alpha_target = self._config.drag_alpha_target
        self._dragging.add(i)
        self._fixed[i] = self._pos[i]
        self._fixed_mask[i] = True
        return True

    def drag(self, entity_id: str, x: float, y: float) -> bool:
        i = self._index.get(entity_id)
        if self.is_stopped or i is None or i not in self._dragging:
            return False
        self._fixed[i] = (x, y)
        self._pos[i] = (x, y)
        self._vel[i] = 0.0
        return True

    def drag_end(self, entity_id: str) -> bool:
        """Demote a dragged entity back to free."""
        i = self._index.get(entity_id)
        if self.is_stopped or i is None or i not in self._dragging:
            return False
        self._dragging.discard(i)
        self._fixed_mask[i] = False
        if not self._dragging:
            self.alpha_target = 0.0
        return True

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def stop(self) -> None:
        if self.is_stopped:
            return
        self.state = SimulationState.STOPPED
        self.alpha = 0.0
        self.alpha_target = 0.0
        self._dragging.clear()
        logger.debug("Layout simulation stopped")
