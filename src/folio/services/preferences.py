"""Viewer preference dataclasses and persistence helpers."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping

__all__ = [
    "ViewerPreferences",
    "PreferencesStore",
    "Preferences",
    "PREFERENCE_KEYS",
]

LOGGER = logging.getLogger(__name__)
_PREFERENCES_DIR = Path.home() / ".folio"
_DEFAULT_PREFERENCES_PATH = _PREFERENCES_DIR / "preferences.json"
_PREFERENCES_VERSION = 1
_ENV_OVERRIDES: Mapping[str, str] = {
    "FOLIO_THEME": "theme",
}
_BOOL_ENV_OVERRIDES: Mapping[str, str] = {
    "FOLIO_DEBUG_LOGGING": "debug_logging",
}
_INT_ENV_OVERRIDES: Mapping[str, str] = {
    "FOLIO_CURSOR_TOOL": "cursor_tool_on_load",
}
_TRUE_VALUES = {"1", "true", "yes", "on", "debug"}

# Wire keys understood by :class:`Preferences` mapped onto dataclass fields.
PREFERENCE_KEYS: Mapping[str, str] = {
    "enableHandToolOnLoad": "enable_hand_tool_on_load",
    "cursorToolOnLoad": "cursor_tool_on_load",
    "theme": "theme",
    "debugLogging": "debug_logging",
    "windowGeometry": "window_geometry",
}


@dataclass(slots=True)
class ViewerPreferences:
    """User preferences persisted between viewer sessions."""

    # Legacy flag superseded by ``cursor_tool_on_load``; migrated on startup.
    enable_hand_tool_on_load: bool = False
    cursor_tool_on_load: int = 0
    theme: str = "default"
    debug_logging: bool = False
    window_geometry: str | None = None


class PreferencesStore:
    """Persistence adapter for :class:`ViewerPreferences`."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or _DEFAULT_PREFERENCES_PATH

    @property
    def path(self) -> Path:
        """Return the resolved path backing this store."""

        return self._path

    def load(self, *, overrides: Mapping[str, Any] | None = None) -> ViewerPreferences:
        """Load preferences from disk, applying CLI/environment overrides when present."""

        preferences = self.load_persisted()
        if overrides:
            preferences = self._apply_overrides(preferences, overrides, source="CLI")

        return self._apply_env_overrides(preferences)

    def load_persisted(self) -> ViewerPreferences:
        """Load exactly what is stored on disk, without any overrides."""

        payload = self._read_payload()
        preferences = ViewerPreferences()
        if payload:
            data = _filter_fields(payload)
            try:
                preferences = ViewerPreferences(**data)
            except TypeError as exc:
                LOGGER.warning("Preferences payload contained unexpected data: %s", exc)
                preferences = ViewerPreferences()
            LOGGER.debug("Preferences loaded from %s: %s", self._path, sorted(data))

        if payload and payload.get("version") != _PREFERENCES_VERSION:
            try:
                self.save(preferences)
            except OSError as exc:  # pragma: no cover - depends on filesystem
                LOGGER.warning("Failed to migrate preferences payload: %s", exc)

        return preferences

    def save(self, preferences: ViewerPreferences) -> Path:
        """Persist preferences to disk with an atomic file replace."""

        payload: Dict[str, Any] = asdict(preferences)
        payload["version"] = _PREFERENCES_VERSION
        body = json.dumps(payload, indent=2, sort_keys=True)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(".tmp")
        tmp_path.write_text(body, encoding="utf-8")
        tmp_path.replace(self._path)
        LOGGER.debug("Preferences saved to %s", self._path)
        return self._path

    def _read_payload(self) -> Dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            text = self._path.read_text(encoding="utf-8")
            payload = json.loads(text)
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError as exc:
            LOGGER.warning("Preferences file %s is not valid JSON: %s", self._path, exc)
            return {}
        if not isinstance(payload, dict):
            LOGGER.warning("Preferences file %s does not hold a JSON object", self._path)
            return {}
        return payload

    def _apply_overrides(
        self,
        preferences: ViewerPreferences,
        overrides: Mapping[str, Any],
        *,
        source: str = "runtime",
    ) -> ViewerPreferences:
        allowed = {field.name for field in fields(ViewerPreferences)}
        filtered = {
            key: value for key, value in overrides.items() if key in allowed and value is not None
        }
        if filtered:
            LOGGER.debug("Applying %s preference overrides: %s", source, sorted(filtered))
            preferences = replace(preferences, **filtered)
        return preferences

    def _apply_env_overrides(self, preferences: ViewerPreferences) -> ViewerPreferences:
        overrides: Dict[str, Any] = {}
        for env_name, field_name in _ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value is not None:
                overrides[field_name] = value
        for env_name, field_name in _BOOL_ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value is not None:
                overrides[field_name] = value.strip().lower() in _TRUE_VALUES
        for env_name, field_name in _INT_ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value is None:
                continue
            try:
                overrides[field_name] = int(value, 10)
            except ValueError:
                LOGGER.warning(
                    "Environment override %s=%s is not a valid integer",
                    env_name,
                    value,
                )
        if overrides:
            preferences = self._apply_overrides(preferences, overrides, source="environment")
        return preferences


class Preferences:
    """Asynchronous key/value view over a :class:`PreferencesStore`.

    ``get`` is a coroutine so callers treat the read as a suspension point,
    the same way they would with a remote or IPC-backed store. ``set`` writes
    the single key through to disk immediately.
    """

    def __init__(
        self,
        store: PreferencesStore,
        preferences: ViewerPreferences | None = None,
    ) -> None:
        self._store = store
        self._preferences = preferences
        self._lock = asyncio.Lock()

    @property
    def store(self) -> PreferencesStore:
        return self._store

    def snapshot(self) -> ViewerPreferences:
        """Return the current preference values, loading them if needed."""

        if self._preferences is None:
            self._preferences = self._store.load()
        return self._preferences

    async def get(self, key: str) -> Any:
        field_name = _field_for_key(key)
        async with self._lock:
            if self._preferences is None:
                self._preferences = await asyncio.to_thread(self._store.load)
            return getattr(self._preferences, field_name)

    def set(self, key: str, value: Any) -> None:
        """Persist one preference and update the in-memory view.

        Only ``key`` changes on disk; CLI and environment overrides in the
        in-memory view stay confined to this run.
        """

        field_name = _field_for_key(key)
        current = self.snapshot()
        persisted = replace(self._store.load_persisted(), **{field_name: value})
        self._store.save(persisted)
        self._preferences = replace(current, **{field_name: value})
        LOGGER.debug("Preference %s set to %r", key, value)


def _field_for_key(key: str) -> str:
    try:
        return PREFERENCE_KEYS[key]
    except KeyError:
        raise KeyError(f"Unknown preference '{key}'") from None


def _filter_fields(payload: Mapping[str, Any]) -> Dict[str, Any]:
    allowed = {field.name for field in fields(ViewerPreferences)}
    return {key: value for key, value in payload.items() if key in allowed}
