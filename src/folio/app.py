"""Application entry point for the Folio viewer.

``folio`` loads preferences, configures logging, and then either prints the
effective preferences (``--dump-preferences``) or opens the viewer window on
a qasync event loop.
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import json
import logging
import os
import sys
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, TextIO, cast, get_args, get_type_hints

from .services.preferences import Preferences, PreferencesStore, ViewerPreferences
from .utils import logging as logging_utils

_TRUE_VALUES = frozenset({"1", "true", "yes", "on", "debug"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off", "disabled"})
_NULL_VALUES = frozenset({"none", "null"})
_ENV_PREFIX = "FOLIO_"
_LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class QtRuntime:
    """The QApplication and the qasync loop driving it."""

    app: Any
    loop: asyncio.AbstractEventLoop


def configure_logging(debug: bool = False) -> None:
    """Install file and console logging, then route Qt messages into it."""

    level = logging.DEBUG if debug else logging.INFO
    log_path = logging_utils.setup_logging(level)
    _LOGGER.debug("Logging to %s at %s", log_path, logging.getLevelName(level))
    _install_qt_message_handler()


def load_preferences(
    path: Optional[Path] = None,
    *,
    store: PreferencesStore | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> ViewerPreferences:
    """Load persisted preferences, falling back to defaults on I/O errors."""

    active_store = store or PreferencesStore(path)
    try:
        return active_store.load(overrides=overrides)
    except OSError as exc:
        _LOGGER.warning("Failed to load preferences from %s: %s", active_store.path, exc)
        return ViewerPreferences()


def create_qapp(preferences: ViewerPreferences) -> QtRuntime:
    """Create the QApplication and install a qasync loop as the asyncio loop."""

    try:  # Imported lazily so --dump-preferences works without a display stack.
        from PySide6.QtWidgets import QApplication
    except ImportError as exc:  # pragma: no cover - depends on desktop stack
        raise RuntimeError("PySide6 must be installed to launch the Folio viewer.") from exc

    try:
        from qasync import QEventLoop
    except ImportError as exc:  # pragma: no cover - depends on env setup
        raise RuntimeError("qasync is required to run the Folio viewer.") from exc

    app = cast(Any, QApplication.instance() or QApplication(sys.argv))
    app.setApplicationName("Folio")
    app.setApplicationDisplayName("Folio")
    if preferences.theme.lower() == "dark":
        app.setStyle("Fusion")

    loop = QEventLoop(app)
    asyncio.set_event_loop(loop)
    app.aboutToQuit.connect(loop.stop)
    return QtRuntime(app=app, loop=loop)


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point invoked by the ``folio`` console script."""

    args, qt_args = _parse_cli_args(argv)
    sys.argv = [sys.argv[0] if sys.argv else "folio", *qt_args]

    debug = os.environ.get("FOLIO_DEBUG", "").strip().lower() in _TRUE_VALUES
    configure_logging(debug)

    raw_path = args.preferences_path or os.environ.get("FOLIO_PREFERENCES_PATH")
    store = PreferencesStore(Path(raw_path).expanduser() if raw_path else None)
    try:
        cli_overrides = _coerce_cli_overrides(args.overrides)
    except ValueError as exc:
        print(f"Invalid --set override: {exc}", file=sys.stderr)
        raise SystemExit(2) from exc

    preferences = load_preferences(store=store, overrides=cli_overrides or None)

    if args.dump_preferences:
        _dump_preferences(preferences, store, overrides=cli_overrides)
        return

    if preferences.debug_logging and not debug:
        logging_utils.set_level(logging.DEBUG)
        _LOGGER.debug("Debug logging enabled by preferences")

    runtime = create_qapp(preferences)

    from .ui.bootstrap import ViewerContext
    from .ui.viewer_shell import ViewerWindow

    loop = runtime.loop
    context = ViewerContext(
        preferences=Preferences(store, preferences),
        pages_count=max(0, args.pages),
        scheduler=loop.create_task,
    )
    window = ViewerWindow(context)
    if preferences.window_geometry:
        try:
            window.restoreGeometry(bytes.fromhex(preferences.window_geometry))
        except ValueError:
            _LOGGER.warning("Ignoring malformed saved window geometry")
    window.show()

    try:
        loop.run_forever()
    except KeyboardInterrupt:  # pragma: no cover - manual shutdown path
        _LOGGER.info("Viewer interrupted; shutting down.")
    finally:
        _drain_event_loop(loop)
        loop.close()


def _drain_event_loop(loop: asyncio.AbstractEventLoop) -> None:
    """Cancel leftover tasks (such as the startup preference read) before closing."""

    if loop.is_closed():
        return

    pending = [task for task in asyncio.all_tasks(loop) if not task.done()]
    try:
        if pending:
            for task in pending:
                task.cancel()
            _LOGGER.debug("Cancelled %d pending task(s) on shutdown", len(pending))
            loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
        with contextlib.suppress(NotImplementedError):
            loop.run_until_complete(loop.shutdown_asyncgens())
    except RuntimeError as exc:  # pragma: no cover - loop already stopping
        _LOGGER.debug("Event loop could not be drained: %s", exc)


def _install_qt_message_handler() -> None:
    """Send Qt's own diagnostics to the ``PySide6`` logger."""

    try:
        from PySide6.QtCore import QtMsgType, qInstallMessageHandler
    except ImportError:  # pragma: no cover - PySide6 optional during tests
        return

    levels = {
        QtMsgType.QtDebugMsg: logging.DEBUG,
        QtMsgType.QtInfoMsg: logging.INFO,
        QtMsgType.QtWarningMsg: logging.WARNING,
        QtMsgType.QtCriticalMsg: logging.ERROR,
        QtMsgType.QtFatalMsg: logging.CRITICAL,
    }
    qt_logger = logging.getLogger("PySide6")

    def _forward(mode, _context, message):  # type: ignore[no-untyped-def]
        qt_logger.log(levels.get(mode, logging.INFO), message)

    qInstallMessageHandler(_forward)


def _parse_cli_args(argv: Sequence[str] | None) -> tuple[argparse.Namespace, list[str]]:
    """Parse Folio's options; anything unrecognised is left for Qt."""

    parser = argparse.ArgumentParser(
        prog="folio",
        description="Open the Folio document viewer or inspect its preferences.",
    )
    parser.add_argument(
        "--dump-preferences",
        action="store_true",
        help="Print the effective preferences as JSON and exit.",
    )
    parser.add_argument(
        "--preferences-path",
        metavar="PATH",
        help="Use PATH instead of ~/.folio/preferences.json.",
    )
    parser.add_argument(
        "--set",
        dest="overrides",
        metavar="KEY=VALUE",
        action="append",
        default=[],
        help="Override a preference field for this run (repeatable).",
    )
    parser.add_argument(
        "--pages",
        type=int,
        default=0,
        help="Page count of the document shown in the viewer.",
    )
    return parser.parse_known_args(argv)


def _coerce_cli_overrides(items: Sequence[str]) -> Dict[str, Any]:
    """Turn ``field=value`` strings into typed :class:`ViewerPreferences` values.

    Raises:
        ValueError: for malformed entries, unknown fields or values that do
            not fit the field's type.
    """

    known = {field.name for field in fields(ViewerPreferences)}
    hints = get_type_hints(ViewerPreferences)
    overrides: Dict[str, Any] = {}
    for entry in items:
        key, separator, raw_value = entry.partition("=")
        key = key.strip()
        if not separator:
            raise ValueError(f"Override '{entry}' must use KEY=VALUE syntax.")
        if not key:
            raise ValueError("Override is missing a field name.")
        if key not in known:
            raise ValueError(f"Unknown preference '{key}'.")
        overrides[key] = _coerce_value(hints[key], raw_value.strip())
    return overrides


def _coerce_value(annotation: Any, raw_value: str) -> Any:
    members = [arg for arg in get_args(annotation) if arg is not type(None)]
    nullable = len(members) < len(get_args(annotation))
    if nullable and raw_value.lower() in _NULL_VALUES:
        return None
    target = members[0] if members else annotation
    converter = _CONVERTERS.get(target)
    return converter(raw_value) if converter is not None else raw_value


def _parse_bool(value: str) -> bool:
    lowered = value.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"Cannot coerce '{value}' to a boolean.")


_CONVERTERS: Mapping[Any, Callable[[str], Any]] = {
    bool: _parse_bool,
    int: lambda value: int(value, 10),
    float: float,
    str: str,
}


def _dump_preferences(
    preferences: ViewerPreferences,
    store: PreferencesStore,
    *,
    overrides: Mapping[str, Any],
    stream: TextIO | None = None,
) -> None:
    """Write the effective preferences and where they came from as JSON."""

    log_path = logging_utils.get_log_path()
    output = {
        "preferences": asdict(preferences),
        "meta": {
            "path": str(store.path),
            "cli_overrides": sorted(overrides),
            "environment_variables": sorted(name for name in os.environ if name.startswith(_ENV_PREFIX)),
            "log_path": str(log_path) if log_path is not None else None,
        },
    }
    destination = stream or sys.stdout
    json.dump(output, destination, indent=2)
    destination.write("\n")
