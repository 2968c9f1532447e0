"""Cursor tool state for the document container.

The controller decides what a primary-button drag does inside the document
container: select text (the default) or pan the view with the hand tool.
Presentation mode temporarily forces the select tool and locks switching
until it ends, at which point the previous tool is restored.
"""

from __future__ import annotations

import asyncio
import logging
from enum import IntEnum
from typing import Any, Callable, Coroutine, Mapping, Protocol

from ..services.preferences import Preferences
from .events import CursorToolChanged, EventBus, PresentationModeChanged, SwitchCursorTool
from .grab_to_pan import GrabToPan

LOGGER = logging.getLogger(__name__)

Scheduler = Callable[[Coroutine[Any, Any, Any]], Any]


class CursorTool(IntEnum):
    """Pointer-drag behaviours; the integer values are the persisted format."""

    SELECT = 0  # The default value.
    HAND = 1
    ZOOM = 2  # Reserved; no handler or toolbar control exists for it yet.


class GestureHandler(Protocol):
    """Collaborator that arms or disarms a pointer gesture on the container."""

    def activate(self) -> None:
        ...

    def deactivate(self) -> None:
        ...


class CursorToolsController:
    """Owns the active cursor tool and reacts to presentation mode.

    Args:
        container: The document container the gesture handlers operate on.
        event_bus: Bus used to receive ``switchcursortool`` and
            ``presentationmodechanged`` and to publish ``cursortoolchanged``.
        preferences: Optional preference facade; when supplied, the tool to
            use on load is read from it in the background.
        hand_tool: Gesture handler for :attr:`CursorTool.HAND`. Defaults to
            a :class:`GrabToPan` bound to ``container``.
        scheduler: Runs the startup preference coroutine. Defaults to a task
            on the running loop, or on the thread's current loop when none
            is running. Construction never waits for the read.
    """

    def __init__(
        self,
        container: Any,
        event_bus: EventBus,
        *,
        preferences: Preferences | None = None,
        hand_tool: GestureHandler | None = None,
        scheduler: Scheduler | None = None,
    ) -> None:
        self.container = container
        self._event_bus = event_bus
        self._preferences = preferences

        self._active = CursorTool.SELECT
        self._active_before_presentation_mode: CursorTool | None = None

        self._hand_tool: GestureHandler = hand_tool if hand_tool is not None else GrabToPan(container)
        # Tools without an entry here are unsupported; SELECT needs no handler.
        self._handlers: Mapping[CursorTool, GestureHandler | None] = {
            CursorTool.SELECT: None,
            CursorTool.HAND: self._hand_tool,
        }

        event_bus.subscribe(SwitchCursorTool, self._on_switch_cursor_tool)
        event_bus.subscribe(PresentationModeChanged, self._on_presentation_mode_changed)

        self._startup_task: Any = None
        if preferences is not None:
            self._startup_task = (scheduler or _run_background)(self._reconcile_preferences())

    @property
    def active_tool(self) -> CursorTool:
        """Return the currently active cursor tool."""

        return self._active

    @property
    def saved_tool(self) -> CursorTool | None:
        """Return the tool to restore after presentation mode, if any."""

        return self._active_before_presentation_mode

    @property
    def hand_tool(self) -> GestureHandler:
        return self._hand_tool

    @property
    def startup_task(self) -> Any:
        """Return whatever the scheduler returned for the startup read."""

        return self._startup_task

    def switch_tool(self, tool: Any) -> None:
        """Switch to ``tool``; ignored while presentation mode is active.

        ``tool`` must be one of the supported :class:`CursorTool` values or
        its integer equivalent. Anything else, booleans included, is logged
        and leaves the controller untouched.
        """

        if self._active_before_presentation_mode is not None:
            return  # Cursor tools cannot be used in presentation mode.
        self._switch(tool)

    def _switch(self, tool: Any) -> None:
        requested = _coerce_tool(tool)
        if requested is None or requested not in self._handlers:
            LOGGER.error("Cannot switch cursor tool: %r is an unsupported value.", tool)
            return
        if requested is self._active:
            return  # The requested tool is already active.

        current_handler = self._handlers[self._active]
        if current_handler is not None:
            current_handler.deactivate()
        next_handler = self._handlers[requested]
        if next_handler is not None:
            next_handler.activate()

        # Only record the tool once both handlers have been toggled.
        self._active = requested
        LOGGER.debug("Cursor tool switched to %s", requested.name)
        self._event_bus.publish(CursorToolChanged(source=self, tool=self._active))

    def _on_switch_cursor_tool(self, event: SwitchCursorTool) -> None:
        self.switch_tool(event.tool)

    def _on_presentation_mode_changed(self, event: PresentationModeChanged) -> None:
        if event.switch_in_progress:
            return

        if event.active:
            if self._active_before_presentation_mode is not None:
                return  # Already overridden; keep the original slot.
            previously_active = self._active
            self._switch(CursorTool.SELECT)
            self._active_before_presentation_mode = previously_active
            LOGGER.debug("Presentation mode saved cursor tool %s", previously_active.name)
            return

        previously_active = self._active_before_presentation_mode
        if previously_active is None:
            LOGGER.debug("Presentation mode ended without a saved cursor tool")
            return
        self._active_before_presentation_mode = None
        self._switch(previously_active)

    async def _reconcile_preferences(self) -> None:
        """Apply the tool-on-load preference, migrating the legacy hand flag."""

        preferences = self._preferences
        if preferences is None:
            return
        try:
            hand_tool_pref, cursor_tool_pref = await asyncio.gather(
                preferences.get("enableHandToolOnLoad"),
                preferences.get("cursorToolOnLoad"),
            )
            if hand_tool_pref is True:
                preferences.set("enableHandToolOnLoad", False)
                if _coerce_tool(cursor_tool_pref) is CursorTool.SELECT:
                    cursor_tool_pref = CursorTool.HAND
                    preferences.set("cursorToolOnLoad", int(cursor_tool_pref))
            self.switch_tool(cursor_tool_pref)
        except Exception as exc:
            LOGGER.debug("Cursor tool preferences unavailable; keeping default: %s", exc)


def _coerce_tool(value: Any) -> CursorTool | None:
    if isinstance(value, CursorTool):
        return value
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    try:
        return CursorTool(value)
    except ValueError:
        return None


def _run_background(coroutine: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
    """Schedule ``coroutine`` without waiting for it.

    Outside a running loop the task lands on the thread's current loop (the
    qasync loop once the app is up) and runs when that loop next spins.
    """

    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        policy = asyncio.get_event_loop_policy()
        try:
            loop = policy.get_event_loop()
        except RuntimeError:
            loop = policy.new_event_loop()
            policy.set_event_loop(loop)
    return loop.create_task(coroutine)


__all__ = ["CursorTool", "CursorToolsController", "GestureHandler", "Scheduler"]
