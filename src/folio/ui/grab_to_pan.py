"""Hand tool that lets a primary-button drag pan the document container."""

from __future__ import annotations

import logging
from typing import Any

try:  # pragma: no cover - Qt imports are optional during tests
    from PySide6.QtWidgets import QGraphicsView
except Exception:  # pragma: no cover - PySide6 not available
    QGraphicsView = None  # type: ignore[assignment]

LOGGER = logging.getLogger(__name__)


class GrabToPan:
    """Arms and disarms drag-to-pan on a document container.

    When the container is a ``QGraphicsView`` the panning itself is left to
    Qt's ``ScrollHandDrag`` mode. Any other container only has its
    ``active`` state tracked, which keeps the tool usable headless.
    Both ``activate`` and ``deactivate`` are idempotent.
    """

    def __init__(self, element: Any | None) -> None:
        self.element = element
        self._active = False
        self._previous_drag_mode: Any = None

    @property
    def active(self) -> bool:
        return self._active

    def activate(self) -> None:
        if self._active:
            return
        self._active = True
        view = self._graphics_view()
        if view is not None:
            self._previous_drag_mode = view.dragMode()
            view.setDragMode(QGraphicsView.DragMode.ScrollHandDrag)
        LOGGER.debug("Hand tool armed")

    def deactivate(self) -> None:
        if not self._active:
            return
        self._active = False
        view = self._graphics_view()
        if view is not None:
            restore = self._previous_drag_mode
            if restore is None or restore == QGraphicsView.DragMode.ScrollHandDrag:
                restore = QGraphicsView.DragMode.NoDrag
            view.setDragMode(restore)
            self._previous_drag_mode = None
        LOGGER.debug("Hand tool disarmed")

    def _graphics_view(self) -> Any | None:
        if QGraphicsView is None:
            return None
        element = self.element
        if isinstance(element, QGraphicsView):
            return element
        # Containers wrapped in a StyledElement expose the real widget.
        widget = getattr(element, "widget", None)
        if isinstance(widget, QGraphicsView):
            return widget
        return None


__all__ = ["GrabToPan"]
