"""Interaction coordinator: owns the shared tooltip and the entity selection."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from core.models import Connection, Entity
from interaction.overlay import OverlaySurface, theme_for
from interaction.tooltip import connection_tooltip, entity_tooltip

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class _FiredHandle:
    def cancel(self) -> None:
        pass


class AsyncioScheduler:
    """Timers on the running event loop.

    Outside a running loop there is nothing to defer to, so the callback runs
    at once.
    """

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            callback()
            return _FiredHandle()
        return loop.call_later(delay, callback)


@dataclass(frozen=True)
class TooltipConfig:
    offset_x: float = 15.0
    offset_y: float = -35.0
    hide_delay_s: float = 0.08


DEFAULT_TOOLTIP_CONFIG = TooltipConfig()

type SelectionListener = Callable[[Entity | None], None]


class InteractionCoordinator:
    """Single writer of the tooltip overlay.

    Show is immediate and cancels a pending hide; hide waits ``hide_delay_s``
    so moving between adjacent elements does not flicker. Entity hover is
    ignored while the detail panel is open.
    """

    def __init__(
        self,
        overlay: OverlaySurface,
        scheduler: Scheduler,
        config: TooltipConfig = DEFAULT_TOOLTIP_CONFIG,
        dark: bool = False,
        on_select: SelectionListener | None = None,
    ) -> None:
        self._overlay = overlay
        self._scheduler = scheduler
        self._config = config
        self._on_select = on_select
        self._hide_handle: TimerHandle | None = None
        self._selected: Entity | None = None
        self._torn_down = False
        self._dark = dark
        self._overlay.apply_theme(theme_for(dark))

    @property
    def selected(self) -> Entity | None:
        return self._selected

    @property
    def panel_open(self) -> bool:
        return self._selected is not None

    @property
    def dark(self) -> bool:
        return self._dark

    def _position(self, pointer: tuple[float, float]) -> tuple[float, float]:
        return (pointer[0] + self._config.offset_x, pointer[1] + self._config.offset_y)

    def _cancel_hide(self) -> None:
        if self._hide_handle is not None:
            self._hide_handle.cancel()
            self._hide_handle = None

    def _show(self, content: str, pointer: tuple[float, float]) -> None:
        self._cancel_hide()
        self._overlay.show(content, self._position(pointer))

    def _hide_now(self) -> None:
        self._hide_handle = None
        if not self._torn_down:
            self._overlay.hide()

    # ---------------------------------------------------------------------------
    # Hover
    # ---------------------------------------------------------------------------

    def hover_entity(self, entity: Entity, pointer: tuple[float, float], detailed: bool = True) -> bool:
        if self._torn_down or self.panel_open:
            return False
        self._show(entity_tooltip(entity, detailed), pointer)
        return True

    def hover_connection(
        self,
        connection: Connection,
        source: Entity | None,
        target: Entity | None,
        hour: int,
        pointer: tuple[float, float],
        detailed: bool = True,
    ) -> bool:
        if self._torn_down or connection.flow_at(hour) == 0:
            return False
        self._show(connection_tooltip(connection, source, target, hour, detailed), pointer)
        return True

    def move(self, pointer: tuple[float, float]) -> None:
        if self._torn_down:
            return
        self._overlay.move(self._position(pointer))

    def leave(self) -> None:
        """Schedule a debounced hide; a later show cancels it."""
        if self._torn_down:
            return
        self._cancel_hide()
        self._hide_handle = self._scheduler.call_later(self._config.hide_delay_s, self._hide_now)

    # ---------------------------------------------------------------------------
    # Selection
    # ---------------------------------------------------------------------------

    def click_entity(self, entity: Entity) -> None:
        if self._torn_down:
            return
        self._cancel_hide()
        self._overlay.hide()
        self._select(entity)

    def click_background(self) -> None:
        if self._torn_down or self._selected is None:
            return
        self._select(None)

    def drop_selection_if_hidden(self, visible_ids: set[str]) -> None:
        """Close the panel when the selected entity is filtered out."""
        if self._selected is not None and self._selected.id not in visible_ids:
            self._select(None)

    def _select(self, entity: Entity | None) -> None:
        self._selected = entity
        logger.debug("Selection: %s", entity.id if entity else None)
        if self._on_select is not None:
            self._on_select(entity)

    # ---------------------------------------------------------------------------
    # Theme and lifecycle
    # ---------------------------------------------------------------------------

    def set_dark(self, dark: bool) -> None:
        if self._torn_down:
            return
        self._dark = dark
        self._overlay.apply_theme(theme_for(dark))

    def teardown(self) -> None:
        if self._torn_down:
            return
        self._torn_down = True
        self._cancel_hide()
        self._overlay.remove()
