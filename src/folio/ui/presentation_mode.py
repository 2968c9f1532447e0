"""Full-screen presentation mode for the viewer window."""

from __future__ import annotations

import logging
from typing import Callable

from .events import EventBus, PresentationModeChanged, PresentationModeRequested

LOGGER = logging.getLogger(__name__)


class PresentationModeController:
    """Enters and leaves presentation mode, announcing each transition.

    Every transition is published twice: first with ``switch_in_progress``
    set while the window changes state, then once it has settled.
    """

    def __init__(
        self,
        event_bus: EventBus,
        *,
        enter_fullscreen: Callable[[], None] | None = None,
        exit_fullscreen: Callable[[], None] | None = None,
    ) -> None:
        self._event_bus = event_bus
        self._enter_fullscreen = enter_fullscreen
        self._exit_fullscreen = exit_fullscreen
        self._active = False
        event_bus.subscribe(PresentationModeRequested, self._on_requested)

    @property
    def active(self) -> bool:
        return self._active

    def request(self) -> bool:
        """Enter presentation mode; returns False if it is already active."""

        if self._active:
            return False
        self._transition(True, self._enter_fullscreen)
        return True

    def exit(self) -> bool:
        """Leave presentation mode; returns False if it was not active."""

        if not self._active:
            return False
        self._transition(False, self._exit_fullscreen)
        return True

    def _transition(self, active: bool, apply: Callable[[], None] | None) -> None:
        self._event_bus.publish(PresentationModeChanged(active=active, switch_in_progress=True))
        if apply is not None:
            apply()
        self._active = active
        LOGGER.info("Presentation mode %s", "engaged" if active else "ended")
        self._event_bus.publish(PresentationModeChanged(active=active, switch_in_progress=False))

    def _on_requested(self, event: PresentationModeRequested) -> None:
        del event
        self.request()


__all__ = ["PresentationModeController"]
