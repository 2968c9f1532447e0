"""Collapsible secondary toolbar for the document viewer."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import partial
from types import MappingProxyType
from typing import Any, Mapping

from .cursor_tools import CursorTool
from .events import CursorToolChanged, EventBus, Resize, event_type_for
from .widgets.controls import (
    HIDDEN_CLASS,
    MAX_HEIGHT_PROPERTY,
    TOGGLED_CLASS,
    MeasuredContainer,
    StyledElement,
    ToolbarButton,
)

LOGGER = logging.getLogger(__name__)

# Vertical room kept free below the toolbar so it never covers the scrollbar.
SCROLLBAR_PADDING = 40

_NO_DETAILS: Mapping[str, Any] = MappingProxyType({})


@dataclass(slots=True)
class SecondaryToolbarOptions:
    """Elements the secondary toolbar is assembled from.

    Attributes:
        toolbar: Container for the secondary toolbar.
        toggle_button: Button that toggles the toolbar's visibility.
        toolbar_button_container: Container holding every toolbar button;
            its ``max-height`` is adjusted to fit the main container.
        presentation_mode_button: Enters presentation mode.
        open_file_button: Opens a file.
        print_button: Prints the document.
        download_button: Downloads the document.
        view_bookmark_button: Link to the current location; it only closes
            the toolbar, the link itself is followed by the viewer.
        first_page_button: Goes to the first page.
        last_page_button: Goes to the last page.
        page_rotate_cw_button: Rotates pages clockwise.
        page_rotate_ccw_button: Rotates pages counterclockwise.
        cursor_select_tool_button: Enables the select tool.
        cursor_hand_tool_button: Enables the hand tool.
        document_properties_button: Opens the document properties dialog.
    """

    toolbar: StyledElement
    toggle_button: ToolbarButton
    toolbar_button_container: StyledElement
    presentation_mode_button: ToolbarButton
    open_file_button: ToolbarButton
    print_button: ToolbarButton
    download_button: ToolbarButton
    view_bookmark_button: ToolbarButton
    first_page_button: ToolbarButton
    last_page_button: ToolbarButton
    page_rotate_cw_button: ToolbarButton
    page_rotate_ccw_button: ToolbarButton
    cursor_select_tool_button: ToolbarButton
    cursor_hand_tool_button: ToolbarButton
    document_properties_button: ToolbarButton


@dataclass(frozen=True, slots=True)
class ButtonBinding:
    """Static description of what activating one toolbar control does."""

    control: ToolbarButton
    command: str | None
    details: Mapping[str, Any] = field(default_factory=lambda: _NO_DETAILS)
    close: bool = True


class SecondaryToolbar:
    """Toolbar that publishes viewer commands and mirrors viewer state.

    The toolbar starts closed with an empty page context. It listens for
    ``cursortoolchanged`` to highlight the active cursor tool button and for
    ``resize`` to keep its height inside the main container.
    """

    def __init__(
        self,
        options: SecondaryToolbarOptions,
        main_container: MeasuredContainer,
        event_bus: EventBus,
    ) -> None:
        self.toolbar = options.toolbar
        self.toggle_button = options.toggle_button
        self.toolbar_button_container = options.toolbar_button_container
        self._cursor_buttons: Mapping[CursorTool, ToolbarButton] = {
            CursorTool.SELECT: options.cursor_select_tool_button,
            CursorTool.HAND: options.cursor_hand_tool_button,
        }
        self._bindings: tuple[ButtonBinding, ...] = (
            ButtonBinding(options.presentation_mode_button, "presentationmode"),
            ButtonBinding(options.open_file_button, "openfile"),
            ButtonBinding(options.print_button, "print"),
            ButtonBinding(options.download_button, "download"),
            ButtonBinding(options.view_bookmark_button, None),
            ButtonBinding(options.first_page_button, "firstpage"),
            ButtonBinding(options.last_page_button, "lastpage"),
            ButtonBinding(options.page_rotate_cw_button, "rotatecw", close=False),
            ButtonBinding(options.page_rotate_ccw_button, "rotateccw", close=False),
            ButtonBinding(
                options.cursor_select_tool_button,
                "switchcursortool",
                MappingProxyType({"tool": CursorTool.SELECT}),
            ),
            ButtonBinding(
                options.cursor_hand_tool_button,
                "switchcursortool",
                MappingProxyType({"tool": CursorTool.HAND}),
            ),
            ButtonBinding(options.document_properties_button, "documentproperties"),
        )
        self._items = {
            "first_page": options.first_page_button,
            "last_page": options.last_page_button,
            "page_rotate_cw": options.page_rotate_cw_button,
            "page_rotate_ccw": options.page_rotate_ccw_button,
        }

        self.main_container = main_container
        self._event_bus = event_bus

        self._opened = False
        self._previous_container_height: int | None = None
        self._page_number = 0
        self._pages_count = 0

        self.reset()
        self.toolbar.add_class(HIDDEN_CLASS)

        self._bind_click_listeners()
        event_bus.subscribe(CursorToolChanged, self._on_cursor_tool_changed)
        event_bus.subscribe(Resize, self._on_resize)

    # ------------------------------------------------------------------
    # State accessors
    # ------------------------------------------------------------------
    @property
    def is_open(self) -> bool:
        return self._opened

    @property
    def page_number(self) -> int:
        return self._page_number

    @property
    def pages_count(self) -> int:
        return self._pages_count

    @property
    def bindings(self) -> tuple[ButtonBinding, ...]:
        return self._bindings

    @property
    def last_measured_height(self) -> int | None:
        return self._previous_container_height

    # ------------------------------------------------------------------
    # Page context
    # ------------------------------------------------------------------
    def set_page_number(self, page_number: int) -> None:
        self._page_number = page_number
        self._update_ui_state()

    def set_pages_count(self, pages_count: int) -> None:
        self._pages_count = pages_count
        self._update_ui_state()

    def reset(self) -> None:
        self._page_number = 0
        self._pages_count = 0
        self._update_ui_state()

    def _update_ui_state(self) -> None:
        items = self._items
        items["first_page"].disabled = self._page_number <= 1
        items["last_page"].disabled = self._page_number >= self._pages_count
        no_pages = self._pages_count == 0
        items["page_rotate_cw"].disabled = no_pages
        items["page_rotate_ccw"].disabled = no_pages

    # ------------------------------------------------------------------
    # Visibility
    # ------------------------------------------------------------------
    def open(self) -> None:
        if self._opened:
            return
        self._opened = True
        self.recompute_max_height()

        self.toggle_button.add_class(TOGGLED_CLASS)
        self.toolbar.remove_class(HIDDEN_CLASS)
        LOGGER.debug("Secondary toolbar opened")

    def close(self) -> None:
        if not self._opened:
            return
        self._opened = False
        self.toolbar.add_class(HIDDEN_CLASS)
        self.toggle_button.remove_class(TOGGLED_CLASS)
        LOGGER.debug("Secondary toolbar closed")

    def toggle(self) -> None:
        if self._opened:
            self.close()
        else:
            self.open()

    def recompute_max_height(self) -> None:
        """Fit the button container inside the main container.

        Only adjusts the height while the toolbar is visible, and skips the
        style write when the container height has not changed.
        """

        if not self._opened:
            return
        container_height = self.main_container.client_height
        if container_height == self._previous_container_height:
            return
        self.toolbar_button_container.set_style(
            MAX_HEIGHT_PROPERTY, container_height - SCROLLBAR_PADDING
        )
        self._previous_container_height = container_height

    # ------------------------------------------------------------------
    # Button bindings
    # ------------------------------------------------------------------
    def activate(self, binding: ButtonBinding) -> None:
        """Run ``binding``: publish its command, then close if requested."""

        if binding.command is not None:
            details = dict(binding.details)
            details["source"] = self
            self._event_bus.publish(event_type_for(binding.command)(**details))
        if binding.close:
            self.close()

    def _bind_click_listeners(self) -> None:
        self.toggle_button.on_click(self.toggle)
        for binding in self._bindings:
            binding.control.on_click(partial(self.activate, binding))

    def _on_cursor_tool_changed(self, event: CursorToolChanged) -> None:
        for button in self._cursor_buttons.values():
            button.remove_class(TOGGLED_CLASS)
        button = self._cursor_buttons.get(event.tool)
        if button is not None:
            button.add_class(TOGGLED_CLASS)

    def _on_resize(self, event: Resize) -> None:
        del event
        self.recompute_max_height()


__all__ = [
    "SCROLLBAR_PADDING",
    "ButtonBinding",
    "SecondaryToolbar",
    "SecondaryToolbarOptions",
]
