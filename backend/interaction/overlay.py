"""Overlay surface for the single shared tooltip.

The coordinator talks to an ``OverlaySurface``; ``TooltipOverlay`` is the
in-memory surface whose state is streamed to the client with every frame.
"""

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class TooltipTheme:
    background: str
    box_shadow: str
    border: str
    color: str = "white"


LIGHT_THEME = TooltipTheme(
    background="rgba(0, 0, 0, 0.8)",
    box_shadow="0 4px 6px -1px rgba(0, 0, 0, 0.3)",
    border="none",
)
DARK_THEME = TooltipTheme(
    background="rgba(30, 41, 59, 0.9)",
    box_shadow="0 4px 6px -1px rgba(0, 0, 0, 0.5)",
    border="1px solid rgba(75, 85, 99, 0.5)",
)


def theme_for(dark: bool) -> TooltipTheme:
    return DARK_THEME if dark else LIGHT_THEME


class OverlaySurface(Protocol):
    def show(self, content: str, position: tuple[float, float]) -> None: ...

    def move(self, position: tuple[float, float]) -> None: ...

    def hide(self) -> None: ...

    def apply_theme(self, theme: TooltipTheme) -> None: ...

    def remove(self) -> None: ...


@dataclass
class TooltipState:
    visible: bool
    content: str
    x: float
    y: float
    theme: TooltipTheme
    max_width: int = 200  # px


class TooltipOverlay:
    """Tooltip held as plain state. Every call after ``remove`` is a no-op."""

    def __init__(self, theme: TooltipTheme = LIGHT_THEME) -> None:
        self._state: TooltipState | None = TooltipState(visible=False, content="", x=0.0, y=0.0, theme=theme)

    @property
    def state(self) -> TooltipState | None:
        return self._state

    @property
    def removed(self) -> bool:
        return self._state is None

    def show(self, content: str, position: tuple[float, float]) -> None:
        if self._state is None:
            return
        self._state.content = content
        self._state.visible = True
        self._state.x, self._state.y = position

    def move(self, position: tuple[float, float]) -> None:
        if self._state is None:
            return
        self._state.x, self._state.y = position

    def hide(self) -> None:
        if self._state is None:
            return
        self._state.visible = False

    def apply_theme(self, theme: TooltipTheme) -> None:
        if self._state is None:
            return
        self._state.theme = theme

    def remove(self) -> None:
        self._state = None
