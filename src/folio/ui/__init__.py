"""UI package holding the viewer's mode controllers and toolbar."""

from .cursor_tools import CursorTool, CursorToolsController
from .events import EventBus
from .secondary_toolbar import ButtonBinding, SecondaryToolbar, SecondaryToolbarOptions

__all__ = [
    # Event Bus
    "EventBus",
    # Cursor tools
    "CursorTool",
    "CursorToolsController",
    # Secondary toolbar
    "ButtonBinding",
    "SecondaryToolbar",
    "SecondaryToolbarOptions",
]
