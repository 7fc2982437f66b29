"""Centralised layout tunables.

Every magic number that controls the force-directed layout lives here.
Create a custom ``LayoutConfig`` to tweak values for testing::

    cfg = LayoutConfig(link_distance=200.0, random_seed=1)
    sim = LayoutSimulation(positions, config=cfg)
"""

from dataclasses import dataclass

from data.campus_layout import COMPASS_ORIENTATION_DEG, SITE_PLAN_SCALE


@dataclass(frozen=True)
class LayoutConfig:
    """All layout tunables, grouped by force."""

    # --- Link (spring) force ---
    link_distance: float = 600.0  # rest length
    # strength per link is 1 / min(degree(source), degree(target))

    # --- Many-body (repulsion) ---
    charge_strength: float = -800.0
    charge_distance_min: float = 1.0  # avoids the singularity for near-coincident entities

    # --- Centering ---
    center_strength: float = 0.05  # x and y pull toward the viewport midpoint

    # --- Collision ---
    collide_radius: float = 110.0  # per entity; two entities keep 2 * radius apart
    collide_strength: float = 1.0

    # --- Energy ---
    alpha_initial: float = 1.0
    alpha_min: float = 0.001
    alpha_decay: float = 0.0228  # 1 - 0.001 ** (1 / 300): settles in ~300 steps
    velocity_decay: float = 0.4  # fraction of velocity lost per step
    top_up_alpha: float = 0.1  # data update without topology change
    drag_alpha_target: float = 0.3

    # --- Seeding of free entities ---
    seed_radius_fraction: float = 0.3  # of min(width, height)
    initial_velocity_jitter: float = 25.0  # uniform in [-jitter, jitter]
    random_seed: int | None = 42

    # --- Pinned table transform ---
    pinned_scale: float = SITE_PLAN_SCALE
    pinned_rotation_deg: float = COMPASS_ORIENTATION_DEG


DEFAULT = LayoutConfig()
