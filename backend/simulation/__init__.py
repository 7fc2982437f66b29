"""Simulation module - position store and force-directed layout."""

from simulation.config import DEFAULT as DEFAULT_LAYOUT_CONFIG
from simulation.config import LayoutConfig
from simulation.engine import LayoutSimulation, SimulationState
from simulation.positions import FREE, Free, Pinned, PositionStore, ResolvedPosition, rotate_point, seed_on_circle
from simulation.snapshot import FrameSnapshot

__all__ = [
    "DEFAULT_LAYOUT_CONFIG",
    "FREE",
    "FrameSnapshot",
    "Free",
    "LayoutConfig",
    "LayoutSimulation",
    "Pinned",
    "PositionStore",
    "ResolvedPosition",
    "SimulationState",
    "rotate_point",
    "seed_on_circle",
]
