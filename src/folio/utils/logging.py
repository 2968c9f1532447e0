"""Logging setup for the Folio viewer.

Everything logs through the standard :mod:`logging` tree. The viewer installs
one rotating file under ``~/.folio/logs`` (``FOLIO_LOG_DIR`` relocates it)
plus a console handler, and can raise verbosity later once preferences have
been read.
"""

from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path

__all__ = ["LOG_FILE_NAME", "setup_logging", "set_level", "get_log_path"]

LOG_FILE_NAME = "folio.log"
_DEFAULT_LOG_DIR = Path.home() / ".folio" / "logs"
_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
# Qt's event loop integration chatters at DEBUG; keep it at WARNING or above.
_NOISY_LOGGERS: tuple[str, ...] = ("asyncio", "qasync")

_handlers: list[logging.Handler] = []
_log_path: Path | None = None


def setup_logging(
    level: int = logging.INFO,
    *,
    log_dir: Path | str | None = None,
    console: bool = True,
    max_bytes: int = 1_000_000,
    backup_count: int = 3,
    force: bool = False,
) -> Path:
    """Install the viewer's handlers on the root logger and return the log file path.

    Repeated calls are no-ops unless ``force`` is set, in which case the
    previously installed handlers are replaced.
    """

    global _log_path
    if _log_path is not None and not force:
        return _log_path

    target_dir = Path(log_dir or os.environ.get("FOLIO_LOG_DIR") or _DEFAULT_LOG_DIR).expanduser()
    target_dir.mkdir(parents=True, exist_ok=True)
    log_path = target_dir / LOG_FILE_NAME

    formatter = logging.Formatter(fmt=_LOG_FORMAT, datefmt=_DATE_FORMAT)
    handlers: list[logging.Handler] = [
        logging.handlers.RotatingFileHandler(
            log_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        )
    ]
    if console:
        handlers.append(logging.StreamHandler())
    for handler in handlers:
        handler.setFormatter(formatter)

    root = logging.getLogger()
    _remove_installed_handlers(root)
    for handler in handlers:
        root.addHandler(handler)
    _handlers.extend(handlers)
    logging.captureWarnings(True)

    _log_path = log_path
    set_level(level)
    return log_path


def set_level(level: int) -> None:
    """Change the verbosity of the root logger and the viewer's handlers."""

    logging.getLogger().setLevel(level)
    for handler in _handlers:
        handler.setLevel(level)
    quiet_level = max(level, logging.WARNING)
    for logger_name in _NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(quiet_level)


def get_log_path() -> Path | None:
    """Return the log file in use, or ``None`` before :func:`setup_logging`."""

    return _log_path


def _remove_installed_handlers(root: logging.Logger) -> None:
    while _handlers:
        handler = _handlers.pop()
        root.removeHandler(handler)
        handler.close()
