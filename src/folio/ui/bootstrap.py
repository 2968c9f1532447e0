"""Viewer bootstrap module.

Creates the event bus and wires the cursor-tool controller, the secondary
toolbar and presentation mode together around a set of UI elements. The
elements are either headless (tests, scripting) or wrap real Qt widgets
supplied by :class:`~folio.ui.viewer_shell.ViewerWindow`.

Usage:
    from folio.ui.bootstrap import ViewerContext, create_viewer

    components = create_viewer(ViewerContext(pages_count=12))
    components.toolbar.open()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from ..services.preferences import Preferences
from .cursor_tools import CursorToolsController, GestureHandler, Scheduler
from .events import EventBus, FirstPage, LastPage
from .presentation_mode import PresentationModeController
from .secondary_toolbar import SecondaryToolbar, SecondaryToolbarOptions
from .widgets.controls import MeasuredContainer, StyledElement, ToolbarButton

_LOGGER = logging.getLogger(__name__)

# Field name on SecondaryToolbarOptions -> button label.
BUTTON_LABELS: dict[str, str] = {
    "presentation_mode_button": "Presentation Mode",
    "open_file_button": "Open",
    "print_button": "Print",
    "download_button": "Download",
    "view_bookmark_button": "Current View",
    "first_page_button": "Go to First Page",
    "last_page_button": "Go to Last Page",
    "page_rotate_cw_button": "Rotate Clockwise",
    "page_rotate_ccw_button": "Rotate Counterclockwise",
    "cursor_select_tool_button": "Text Selection Tool",
    "cursor_hand_tool_button": "Hand Tool",
    "document_properties_button": "Document Properties…",
}


@dataclass(slots=True)
class ViewerContext:
    """Shared context passed to :func:`create_viewer`."""

    preferences: Preferences | None = None
    pages_count: int = 0
    scheduler: Scheduler | None = None
    hand_tool: GestureHandler | None = None
    enter_fullscreen: Callable[[], None] | None = None
    exit_fullscreen: Callable[[], None] | None = None


@dataclass(slots=True)
class ViewerElements:
    """UI elements the viewer components operate on."""

    container: MeasuredContainer
    toolbar_options: SecondaryToolbarOptions


@dataclass(slots=True)
class ViewerComponents:
    """Everything :func:`create_viewer` wires together."""

    event_bus: EventBus
    elements: ViewerElements
    cursor_tools: CursorToolsController
    toolbar: SecondaryToolbar
    presentation_mode: PresentationModeController
    page_navigator: PageNavigator


class PageNavigator:
    """Keeps the toolbar's page context in step with first/last page commands."""

    def __init__(self, toolbar: SecondaryToolbar, event_bus: EventBus) -> None:
        self._toolbar = toolbar
        event_bus.subscribe(FirstPage, self._on_first_page)
        event_bus.subscribe(LastPage, self._on_last_page)

    def load(self, pages_count: int) -> None:
        """Reset the page context for a document with ``pages_count`` pages."""

        self._toolbar.reset()
        self._toolbar.set_pages_count(pages_count)
        if pages_count > 0:
            self._toolbar.set_page_number(1)

    def _on_first_page(self, event: FirstPage) -> None:
        del event
        if self._toolbar.pages_count > 0:
            self._toolbar.set_page_number(1)

    def _on_last_page(self, event: LastPage) -> None:
        del event
        self._toolbar.set_page_number(self._toolbar.pages_count)


def build_headless_elements(*, container_height: int = 0) -> ViewerElements:
    """Create display-free elements for every control the viewer needs."""

    buttons: dict[str, Any] = {
        name: ToolbarButton(label=label) for name, label in BUTTON_LABELS.items()
    }
    options = SecondaryToolbarOptions(
        toolbar=StyledElement(),
        toggle_button=ToolbarButton(label="Tools"),
        toolbar_button_container=StyledElement(),
        **buttons,
    )
    return ViewerElements(
        container=MeasuredContainer(height=container_height),
        toolbar_options=options,
    )


def create_viewer(
    context: ViewerContext,
    *,
    elements: ViewerElements | None = None,
    event_bus: EventBus | None = None,
) -> ViewerComponents:
    """Create and wire the viewer's mode components.

    Args:
        context: Preferences, page count and window callbacks.
        elements: UI elements to operate on; headless ones are created when
            omitted.
        event_bus: Bus to wire onto; a fresh one is created when omitted.
    """

    _LOGGER.info("Bootstrapping viewer components...")
    bus = event_bus if event_bus is not None else EventBus()
    resolved = elements if elements is not None else build_headless_elements()

    toolbar = SecondaryToolbar(resolved.toolbar_options, resolved.container, bus)
    navigator = PageNavigator(toolbar, bus)
    navigator.load(context.pages_count)
    presentation = PresentationModeController(
        bus,
        enter_fullscreen=context.enter_fullscreen,
        exit_fullscreen=context.exit_fullscreen,
    )
    # Created last so the startup preference read can already reach the toolbar.
    cursor_tools = CursorToolsController(
        resolved.container,
        bus,
        preferences=context.preferences,
        hand_tool=context.hand_tool,
        scheduler=context.scheduler,
    )

    _LOGGER.debug("Viewer wired with %d bus handler(s)", bus.handler_count())
    return ViewerComponents(
        event_bus=bus,
        elements=resolved,
        cursor_tools=cursor_tools,
        toolbar=toolbar,
        presentation_mode=presentation,
        page_navigator=navigator,
    )


__all__ = [
    "BUTTON_LABELS",
    "PageNavigator",
    "ViewerComponents",
    "ViewerContext",
    "ViewerElements",
    "build_headless_elements",
    "create_viewer",
]
