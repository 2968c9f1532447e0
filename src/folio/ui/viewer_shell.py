"""Qt main window hosting the document container and secondary toolbar."""

from __future__ import annotations

import logging
from typing import Any

from PySide6.QtCore import QEvent, QObject, Qt
from PySide6.QtGui import QCloseEvent, QKeySequence, QShortcut
from PySide6.QtWidgets import (
    QFrame,
    QGraphicsScene,
    QGraphicsView,
    QHBoxLayout,
    QMainWindow,
    QScrollArea,
    QSizePolicy,
    QToolButton,
    QVBoxLayout,
    QWidget,
)

from .bootstrap import BUTTON_LABELS, ViewerComponents, ViewerContext, ViewerElements, create_viewer
from .events import EventBus, Resize
from .secondary_toolbar import SecondaryToolbarOptions
from .widgets.controls import MeasuredContainer, StyledElement, ToolbarButton

LOGGER = logging.getLogger(__name__)

WINDOW_APP_NAME = "Folio"
_TOOLBAR_WIDTH = 240


class _ResizeForwarder(QObject):
    """Publishes ``resize`` whenever the watched widget changes size."""

    def __init__(self, event_bus: EventBus, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._event_bus = event_bus

    def eventFilter(self, watched: QObject, event: QEvent) -> bool:  # noqa: N802 - Qt override
        if event.type() == QEvent.Type.Resize:
            self._event_bus.publish(Resize(source=watched))
        return False


class ViewerWindow(QMainWindow):
    """Main window: a graphics view as document container plus the toolbar."""

    def __init__(self, context: ViewerContext, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.setWindowTitle(WINDOW_APP_NAME)

        self._preferences = context.preferences
        self._view = QGraphicsView(QGraphicsScene(self))
        self._view.setObjectName("viewerContainer")
        elements = self._create_elements()

        context.enter_fullscreen = context.enter_fullscreen or self.showFullScreen
        context.exit_fullscreen = context.exit_fullscreen or self.showNormal
        self._components: ViewerComponents = create_viewer(context, elements=elements)

        self._resize_forwarder = _ResizeForwarder(self._components.event_bus, self)
        self._view.installEventFilter(self._resize_forwarder)
        self._install_shortcuts()

    @property
    def components(self) -> ViewerComponents:
        return self._components

    @property
    def event_bus(self) -> EventBus:
        return self._components.event_bus

    def _create_elements(self) -> ViewerElements:
        central = QWidget(self)
        outer = QVBoxLayout(central)
        outer.setContentsMargins(0, 0, 0, 0)
        outer.setSpacing(0)

        header = QHBoxLayout()
        header.addStretch(1)
        toggle = QToolButton(central)
        toggle.setText("Tools")
        toggle.setToolTip("Tools")
        header.addWidget(toggle)
        outer.addLayout(header)

        body = QHBoxLayout()
        body.setSpacing(0)
        body.addWidget(self._view, 1)

        toolbar_frame = QFrame(central)
        toolbar_frame.setObjectName("secondaryToolbar")
        toolbar_frame.setFixedWidth(_TOOLBAR_WIDTH)
        toolbar_layout = QVBoxLayout(toolbar_frame)
        toolbar_layout.setContentsMargins(0, 0, 0, 0)

        scroll = QScrollArea(toolbar_frame)
        scroll.setWidgetResizable(True)
        scroll.setFrameShape(QFrame.Shape.NoFrame)
        scroll.setHorizontalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)
        button_host = QWidget(scroll)
        button_layout = QVBoxLayout(button_host)
        buttons: dict[str, Any] = {}
        for name, label in BUTTON_LABELS.items():
            widget = QToolButton(button_host)
            widget.setText(label)
            widget.setToolButtonStyle(Qt.ToolButtonStyle.ToolButtonTextOnly)
            widget.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Fixed)
            button_layout.addWidget(widget)
            buttons[name] = ToolbarButton(widget, label=label)
        button_layout.addStretch(1)
        scroll.setWidget(button_host)
        toolbar_layout.addWidget(scroll)
        body.addWidget(toolbar_frame, 0, Qt.AlignmentFlag.AlignTop)

        outer.addLayout(body, 1)
        self.setCentralWidget(central)

        options = SecondaryToolbarOptions(
            toolbar=StyledElement(toolbar_frame),
            toggle_button=ToolbarButton(toggle, label="Tools"),
            toolbar_button_container=StyledElement(scroll),
            **buttons,
        )
        return ViewerElements(container=MeasuredContainer(self._view), toolbar_options=options)

    def closeEvent(self, event: QCloseEvent) -> None:  # noqa: N802 - Qt override
        if self._preferences is not None:
            try:
                self._preferences.set("windowGeometry", bytes(self.saveGeometry()).hex())
            except OSError as exc:
                LOGGER.warning("Unable to persist window geometry: %s", exc)
        super().closeEvent(event)

    def _install_shortcuts(self) -> None:
        presentation = self._components.presentation_mode
        enter = QShortcut(QKeySequence(Qt.Key.Key_F5), self)
        enter.activated.connect(presentation.request)
        leave = QShortcut(QKeySequence(Qt.Key.Key_Escape), self)
        leave.activated.connect(presentation.exit)
        toggle = QShortcut(QKeySequence("Ctrl+T"), self)
        toggle.activated.connect(self._components.toolbar.toggle)


__all__ = ["ViewerWindow", "WINDOW_APP_NAME"]
