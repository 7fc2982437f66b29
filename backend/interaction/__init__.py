"""Tooltip overlay, hover/click coordination and detail panel content."""

from interaction.coordinator import (
    DEFAULT_TOOLTIP_CONFIG,
    AsyncioScheduler,
    InteractionCoordinator,
    Scheduler,
    TooltipConfig,
)
from interaction.overlay import DARK_THEME, LIGHT_THEME, OverlaySurface, TooltipOverlay, TooltipState, TooltipTheme, theme_for
from interaction.panel import DetailPanelContent, PanelAttribute, detail_panel
from interaction.tooltip import connection_tooltip, entity_tooltip

__all__ = [
    "DARK_THEME",
    "DEFAULT_TOOLTIP_CONFIG",
    "LIGHT_THEME",
    "AsyncioScheduler",
    "DetailPanelContent",
    "InteractionCoordinator",
    "OverlaySurface",
    "PanelAttribute",
    "Scheduler",
    "TooltipConfig",
    "TooltipOverlay",
    "TooltipState",
    "TooltipTheme",
    "connection_tooltip",
    "detail_panel",
    "entity_tooltip",
    "theme_for",
]
