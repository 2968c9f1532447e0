"""Shared pytest fixtures."""

from __future__ import annotations

import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from typing import Any, Iterator

import pytest

from folio.ui.events import Event, EventBus


class EventRecorder:
    """Collects every event of the subscribed types in publish order."""

    def __init__(self, bus: EventBus, *event_types: type[Event]) -> None:
        self.events: list[Event] = []
        for event_type in event_types:
            bus.subscribe(event_type, self.events.append)

    def of_type(self, event_type: type[Event]) -> list[Any]:
        return [event for event in self.events if type(event) is event_type]


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def recorder_factory(event_bus: EventBus):
    def _factory(*event_types: type[Event]) -> EventRecorder:
        return EventRecorder(event_bus, *event_types)

    return _factory


@pytest.fixture(autouse=True)
def _isolate_folio_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    for name in ("FOLIO_THEME", "FOLIO_DEBUG_LOGGING", "FOLIO_CURSOR_TOOL", "FOLIO_PREFERENCES_PATH"):
        monkeypatch.delenv(name, raising=False)
    yield


_QT_APP: Any = None


@pytest.fixture
def qt_widgets() -> Any:
    """Return ``PySide6.QtWidgets`` with a live QApplication, or skip."""

    global _QT_APP
    module = pytest.importorskip("PySide6.QtWidgets")
    _QT_APP = module.QApplication.instance() or module.QApplication([])
    return module
