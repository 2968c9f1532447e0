"""Element wrappers that keep viewer UI state testable without a display.

Each wrapper tracks its own state (style classes, inline style properties,
enablement) and mirrors changes onto an optional PySide6 widget. Components
such as :class:`~folio.ui.secondary_toolbar.SecondaryToolbar` only ever talk
to these wrappers, so they behave identically headless and on screen.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

LOGGER = logging.getLogger(__name__)

HIDDEN_CLASS = "hidden"
TOGGLED_CLASS = "toggled"
MAX_HEIGHT_PROPERTY = "max-height"


class StyledElement:
    """A UI element carrying style classes and inline style properties."""

    def __init__(self, widget: Any | None = None, *, classes: tuple[str, ...] = ()) -> None:
        self._widget = widget
        self._classes: set[str] = set()
        self._style: dict[str, Any] = {}
        self.style_writes = 0
        for name in classes:
            self.add_class(name)

    @property
    def widget(self) -> Any | None:
        return self._widget

    @property
    def classes(self) -> frozenset[str]:
        return frozenset(self._classes)

    @property
    def style(self) -> Mapping[str, Any]:
        return dict(self._style)

    def has_class(self, name: str) -> bool:
        return name in self._classes

    def add_class(self, name: str) -> None:
        self._classes.add(name)
        self._mirror_class(name, True)

    def remove_class(self, name: str) -> None:
        self._classes.discard(name)
        self._mirror_class(name, False)

    def set_style(self, prop: str, value: Any) -> None:
        """Write a single inline style property."""

        self._style[prop] = value
        self.style_writes += 1
        if self._widget is None:
            return
        if prop == MAX_HEIGHT_PROPERTY:
            self._widget.setMaximumHeight(max(0, int(value)))
        else:
            LOGGER.debug("No widget mapping for style property %s", prop)

    def _mirror_class(self, name: str, present: bool) -> None:
        widget = self._widget
        if widget is None:
            return
        if name == HIDDEN_CLASS:
            widget.setVisible(not present)
        elif name == TOGGLED_CLASS and hasattr(widget, "setChecked"):
            if hasattr(widget, "setCheckable"):
                widget.setCheckable(True)
            widget.setChecked(present)


class ToolbarButton(StyledElement):
    """Clickable element with an enabled/disabled state."""

    def __init__(self, widget: Any | None = None, *, label: str = "") -> None:
        super().__init__(widget)
        self.label = label
        self._disabled = False
        self._listeners: list[Callable[[], None]] = []
        if widget is not None and hasattr(widget, "clicked"):
            widget.clicked.connect(self.click)

    @property
    def disabled(self) -> bool:
        return self._disabled

    @disabled.setter
    def disabled(self, value: bool) -> None:
        self._disabled = bool(value)
        if self._widget is not None:
            self._widget.setEnabled(not self._disabled)

    def on_click(self, listener: Callable[[], None]) -> None:
        """Register ``listener`` to run whenever the button is activated."""

        self._listeners.append(listener)

    def click(self, *_args: Any) -> None:
        """Activate the button, ignoring the request while disabled."""

        if self._disabled:
            return
        # Checkable Qt buttons flip themselves on click; the class is authoritative.
        if self._widget is not None and hasattr(self._widget, "isCheckable") and self._widget.isCheckable():
            self._widget.setChecked(self.has_class(TOGGLED_CLASS))
        for listener in list(self._listeners):
            listener()

    def __repr__(self) -> str:
        return f"ToolbarButton({self.label!r})"


class MeasuredContainer(StyledElement):
    """Element whose rendered height can be measured.

    Headless containers report ``height``; containers wrapping a widget
    report the widget's current height.
    """

    def __init__(self, widget: Any | None = None, *, height: int = 0) -> None:
        super().__init__(widget)
        self._height = height

    @property
    def client_height(self) -> int:
        if self._widget is not None:
            return int(self._widget.height())
        return self._height

    def resize(self, height: int) -> None:
        """Set the headless height; widgets are resized by their layout."""

        self._height = height
        if self._widget is not None:
            self._widget.resize(self._widget.width(), height)


__all__ = [
    "HIDDEN_CLASS",
    "TOGGLED_CLASS",
    "MAX_HEIGHT_PROPERTY",
    "StyledElement",
    "ToolbarButton",
    "MeasuredContainer",
]
