"""Event bus infrastructure for decoupled viewer component communication.

Every event published between the cursor-tool controller, the secondary
toolbar and the surrounding viewer subsystems is a small dataclass declared
here. Each event class carries the wire ``name`` it is known by, so the
toolbar's declarative button table can refer to commands by name and resolve
them through :func:`event_type_for`.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import (
    Any,
    Callable,
    ClassVar,
    Generic,
    TypeVar,
    TYPE_CHECKING,
)
from weakref import WeakMethod, ref

if TYPE_CHECKING:  # pragma: no cover - imports for type checking only
    from typing import DefaultDict

LOGGER = logging.getLogger(__name__)

# Type variable for event types
E = TypeVar("E", bound="Event")

# Handler type: a callable that takes an event and returns None
Handler = Callable[[E], None]


@dataclass(slots=True)
class Event:
    """Base class for all events in the system.

    Subclasses declare their wire name through the ``name`` class variable
    and use ``@dataclass(slots=True)``.

    Example::

        @dataclass(slots=True)
        class Print(Event):
            name: ClassVar[str] = "print"
            source: Any = None
    """

    name: ClassVar[str] = ""


# High-frequency event types that should not log each publish
_QUIET_EVENT_TYPES: set[type] = set()

_EVENT_TYPES: dict[str, type[Event]] = {}


def register_event(event_type: type[E]) -> type[E]:
    """Class decorator recording ``event_type`` under its wire name."""

    wire_name = event_type.name
    if not wire_name:
        raise ValueError(f"{event_type.__name__} does not declare a wire name")
    existing = _EVENT_TYPES.get(wire_name)
    if existing is not None and existing is not event_type:
        raise ValueError(f"Event name '{wire_name}' is already bound to {existing.__name__}")
    _EVENT_TYPES[wire_name] = event_type
    return event_type


def event_type_for(name: str) -> type[Event]:
    """Return the event class registered for ``name``.

    Raises:
        KeyError: if no event is known by that name.
    """

    try:
        return _EVENT_TYPES[name]
    except KeyError:
        raise KeyError(f"Unknown event name '{name}'") from None


def event_names() -> tuple[str, ...]:
    """Return every registered wire name in registration order."""

    return tuple(_EVENT_TYPES)


# =============================================================================
# Cursor tool events
# =============================================================================


@register_event
@dataclass(slots=True)
class SwitchCursorTool(Event):
    """Request that the cursor-tool controller switch to ``tool``.

    Attributes:
        source: The component that issued the request, if any.
        tool: The requested cursor tool. Any value is accepted here; the
              controller reports and ignores values it does not support.
    """

    name: ClassVar[str] = "switchcursortool"
    source: Any = None
    tool: Any = None


@register_event
@dataclass(slots=True)
class CursorToolChanged(Event):
    """Emitted after the cursor-tool controller accepted a transition.

    Attributes:
        source: The controller that performed the switch.
        tool: The cursor tool that is now active.
    """

    name: ClassVar[str] = "cursortoolchanged"
    source: Any
    tool: Any


@register_event
@dataclass(slots=True)
class PresentationModeChanged(Event):
    """Emitted by the presentation (full-screen) subsystem.

    Attributes:
        active: Whether presentation mode is engaged.
        switch_in_progress: True while the transition is still settling;
            listeners should wait for the follow-up event.
    """

    name: ClassVar[str] = "presentationmodechanged"
    active: bool
    switch_in_progress: bool = False


@register_event
@dataclass(slots=True)
class Resize(Event):
    """Emitted by the layout subsystem whenever the viewport is resized."""

    name: ClassVar[str] = "resize"
    source: Any = None


_QUIET_EVENT_TYPES.add(Resize)


# =============================================================================
# Secondary toolbar commands
# =============================================================================


@register_event
@dataclass(slots=True)
class PresentationModeRequested(Event):
    """Ask the viewer to enter presentation mode."""

    name: ClassVar[str] = "presentationmode"
    source: Any = None


@register_event
@dataclass(slots=True)
class OpenFile(Event):
    """Ask the viewer to show its open-file dialog."""

    name: ClassVar[str] = "openfile"
    source: Any = None


@register_event
@dataclass(slots=True)
class Print(Event):
    """Ask the viewer to print the current document."""

    name: ClassVar[str] = "print"
    source: Any = None


@register_event
@dataclass(slots=True)
class Download(Event):
    """Ask the viewer to download/save the current document."""

    name: ClassVar[str] = "download"
    source: Any = None


@register_event
@dataclass(slots=True)
class FirstPage(Event):
    """Ask the viewer to jump to the first page."""

    name: ClassVar[str] = "firstpage"
    source: Any = None


@register_event
@dataclass(slots=True)
class LastPage(Event):
    """Ask the viewer to jump to the last page."""

    name: ClassVar[str] = "lastpage"
    source: Any = None


@register_event
@dataclass(slots=True)
class RotateCw(Event):
    """Ask the viewer to rotate every page clockwise."""

    name: ClassVar[str] = "rotatecw"
    source: Any = None


@register_event
@dataclass(slots=True)
class RotateCcw(Event):
    """Ask the viewer to rotate every page counterclockwise."""

    name: ClassVar[str] = "rotateccw"
    source: Any = None


@register_event
@dataclass(slots=True)
class DocumentProperties(Event):
    """Ask the viewer to open the document properties dialog."""

    name: ClassVar[str] = "documentproperties"
    source: Any = None


class EventBus(Generic[E]):
    """A typed publish-subscribe event bus for decoupled communication.

    Components subscribe to specific event types and are notified when
    events of exactly that type are published. Bound-method handlers are
    stored as weak references so a torn-down toolbar or controller does not
    linger on the bus.

    Example::

        bus = EventBus()

        def on_tool_changed(event: CursorToolChanged) -> None:
            print(f"Now using {event.tool!r}")

        bus.subscribe(CursorToolChanged, on_tool_changed)
        bus.publish(CursorToolChanged(source=None, tool=CursorTool.HAND))
        bus.unsubscribe(CursorToolChanged, on_tool_changed)

    Thread Safety:
        This implementation is NOT thread-safe. All operations should be
        performed from the main thread (Qt's event loop thread).
    """

    __slots__ = ("_handlers",)

    def __init__(self) -> None:
        self._handlers: DefaultDict[type[Event], list[_HandlerRef]] = defaultdict(list)

    def subscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        """Register a handler to receive events of the specified type.

        Note:
            Subscribing the same handler multiple times will result in
            multiple invocations when an event is published.
        """
        handler_ref = _HandlerRef.create(handler)
        self._handlers[event_type].append(handler_ref)
        LOGGER.debug(
            "Subscribed handler %s to event type %s",
            _handler_name(handler),
            event_type.__name__,
        )

    def unsubscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        """Remove the first registration of ``handler`` for ``event_type``.

        Safe to call for handlers that were never subscribed.
        """
        handlers = self._handlers.get(event_type)
        if handlers is None:
            return

        for i, handler_ref in enumerate(handlers):
            if handler_ref.matches(handler):
                handlers.pop(i)
                LOGGER.debug(
                    "Unsubscribed handler %s from event type %s",
                    _handler_name(handler),
                    event_type.__name__,
                )
                return

    def publish(self, event: E) -> None:
        """Broadcast an event to all registered handlers.

        Handlers are invoked synchronously in the order they were
        registered. If a handler raises an exception, it is logged
        and remaining handlers continue to be invoked.
        """
        event_type = type(event)
        handlers = self._handlers.get(event_type)
        is_quiet = event_type in _QUIET_EVENT_TYPES

        if handlers is None:
            if not is_quiet:
                LOGGER.debug("No handlers for event %s", event_type.name or event_type.__name__)
            return

        if not is_quiet:
            LOGGER.debug(
                "Publishing %s to %d handler(s)",
                event_type.name or event_type.__name__,
                len(handlers),
            )

        # Handlers may subscribe or unsubscribe while we dispatch
        dead_refs: list[_HandlerRef] = []

        for handler_ref in list(handlers):
            handler = handler_ref.resolve()
            if handler is None:
                dead_refs.append(handler_ref)
                continue

            try:
                handler(event)
            except Exception:
                LOGGER.exception(
                    "Handler %s raised exception for event %s",
                    _handler_name(handler),
                    event_type.__name__,
                )

        for handler_ref in dead_refs:
            if handler_ref in handlers:
                handlers.remove(handler_ref)

    def dispatch(self, name: str, **details: Any) -> None:
        """Build the event registered under ``name`` and publish it."""

        self.publish(event_type_for(name)(**details))

    def clear(self) -> None:
        """Remove all registered handlers."""
        self._handlers.clear()
        LOGGER.debug("Cleared all event handlers")

    def handler_count(self, event_type: type[E] | None = None) -> int:
        """Return the number of registered handlers.

        Args:
            event_type: If provided, return count for that event type only.
                       If None, return total count across all event types.
        """
        if event_type is not None:
            return len(self._handlers.get(event_type, []))
        return sum(len(handlers) for handlers in self._handlers.values())


class _HandlerRef:
    """Wrapper for handler references supporting both weak and strong refs.

    Bound methods are held through :class:`WeakMethod`; plain functions,
    lambdas and partials are held strongly.
    """

    __slots__ = ("_ref", "_is_weak")

    def __init__(self, handler_ref: WeakMethod | ref | Handler, is_weak: bool) -> None:
        self._ref = handler_ref
        self._is_weak = is_weak

    @classmethod
    def create(cls, handler: Handler) -> _HandlerRef:
        if hasattr(handler, "__self__") and hasattr(handler, "__func__"):
            try:
                return cls(WeakMethod(handler), is_weak=True)
            except TypeError:
                # Some callables can't be weakly referenced
                pass

        return cls(handler, is_weak=False)

    def resolve(self) -> Handler | None:
        """Return the handler callable, or None if it was garbage collected."""
        if not self._is_weak:
            return self._ref  # type: ignore[return-value]
        return self._ref()  # type: ignore[operator]

    def matches(self, handler: Handler) -> bool:
        resolved = self.resolve()
        if resolved is None:
            return False
        return resolved == handler


def _handler_name(handler: Handler) -> str:
    """Get a human-readable name for a handler for logging purposes."""
    if hasattr(handler, "__self__") and hasattr(handler, "__func__"):
        cls_name = type(handler.__self__).__name__
        return f"{cls_name}.{handler.__func__.__name__}"
    if hasattr(handler, "__name__"):
        return handler.__name__
    return repr(handler)


__all__ = [
    # Core infrastructure
    "Event",
    "EventBus",
    "Handler",
    "register_event",
    "event_type_for",
    "event_names",
    # Cursor tool events
    "SwitchCursorTool",
    "CursorToolChanged",
    "PresentationModeChanged",
    "Resize",
    # Secondary toolbar commands
    "PresentationModeRequested",
    "OpenFile",
    "Print",
    "Download",
    "FirstPage",
    "LastPage",
    "RotateCw",
    "RotateCcw",
    "DocumentProperties",
]
