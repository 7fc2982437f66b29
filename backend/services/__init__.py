"""View services: performance governor, viewport and the GraphView orchestrator."""

from services.graph_view import GraphView, RenderFrame
from services.performance import (
    DEFAULT_GOVERNOR_CONFIG,
    GovernorConfig,
    PerformanceGovernor,
    PerformanceMode,
    detect_performance_level,
    recommend,
)
from services.viewport import DEFAULT_VIEWPORT_CONFIG, ViewportConfig, ViewportController, ViewportTransform

__all__ = [
    "DEFAULT_GOVERNOR_CONFIG",
    "DEFAULT_VIEWPORT_CONFIG",
    "GovernorConfig",
    "GraphView",
    "PerformanceGovernor",
    "PerformanceMode",
    "RenderFrame",
    "ViewportConfig",
    "ViewportController",
    "ViewportTransform",
    "detect_performance_level",
    "recommend",
]
