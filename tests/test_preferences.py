"""Tests for the preference persistence layer."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from folio.services.preferences import Preferences, PreferencesStore, ViewerPreferences


def test_load_returns_defaults_when_file_missing(tmp_path: Path) -> None:
    store = PreferencesStore(tmp_path / "preferences.json")

    assert store.load() == ViewerPreferences()
    assert not store.path.exists()


def test_save_and_load_roundtrip(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "preferences.json"
    original = ViewerPreferences(
        enable_hand_tool_on_load=True,
        cursor_tool_on_load=1,
        theme="dark",
        debug_logging=True,
        window_geometry="01d9d0cb",
    )

    PreferencesStore(path).save(original)
    reloaded = PreferencesStore(path).load()

    assert reloaded == original
    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["version"] == 1
    assert not path.with_suffix(".tmp").exists()


def test_unknown_fields_are_ignored(tmp_path: Path) -> None:
    path = tmp_path / "preferences.json"
    path.write_text(
        json.dumps({"version": 1, "cursor_tool_on_load": 1, "sidebar": "outline"}),
        encoding="utf-8",
    )

    loaded = PreferencesStore(path).load()

    assert loaded == ViewerPreferences(cursor_tool_on_load=1)


def test_invalid_json_falls_back_to_defaults(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    path = tmp_path / "preferences.json"
    path.write_text("{not json", encoding="utf-8")

    with caplog.at_level(logging.WARNING):
        loaded = PreferencesStore(path).load()

    assert loaded == ViewerPreferences()
    assert "not valid JSON" in caplog.text


def test_non_object_payload_falls_back_to_defaults(tmp_path: Path) -> None:
    path = tmp_path / "preferences.json"
    path.write_text("[1, 2, 3]", encoding="utf-8")

    assert PreferencesStore(path).load() == ViewerPreferences()


def test_unversioned_payload_is_rewritten(tmp_path: Path) -> None:
    path = tmp_path / "preferences.json"
    path.write_text(json.dumps({"enable_hand_tool_on_load": True}), encoding="utf-8")

    loaded = PreferencesStore(path).load()

    assert loaded.enable_hand_tool_on_load is True
    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["version"] == 1
    assert payload["enable_hand_tool_on_load"] is True


def test_cli_overrides_apply_after_file(tmp_path: Path) -> None:
    path = tmp_path / "preferences.json"
    PreferencesStore(path).save(ViewerPreferences(theme="light"))

    loaded = PreferencesStore(path).load(overrides={"theme": "dark", "unknown": 1, "window_geometry": None})

    assert loaded.theme == "dark"
    assert loaded.window_geometry is None


def test_env_overrides_take_precedence(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    path = tmp_path / "preferences.json"
    PreferencesStore(path).save(ViewerPreferences(theme="light", cursor_tool_on_load=0))
    monkeypatch.setenv("FOLIO_THEME", "dark")
    monkeypatch.setenv("FOLIO_DEBUG_LOGGING", "yes")
    monkeypatch.setenv("FOLIO_CURSOR_TOOL", "1")

    loaded = PreferencesStore(path).load(overrides={"theme": "solarized"})

    assert loaded.theme == "dark"
    assert loaded.debug_logging is True
    assert loaded.cursor_tool_on_load == 1


def test_invalid_integer_env_override_is_ignored(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    caplog: pytest.LogCaptureFixture,
) -> None:
    monkeypatch.setenv("FOLIO_CURSOR_TOOL", "hand")

    with caplog.at_level(logging.WARNING):
        loaded = PreferencesStore(tmp_path / "preferences.json").load()

    assert loaded.cursor_tool_on_load == 0
    assert "FOLIO_CURSOR_TOOL" in caplog.text


class TestPreferencesFacade:
    """Key-based access used by the cursor-tool controller."""

    @pytest.mark.asyncio
    async def test_get_reads_store_lazily(self, tmp_path: Path) -> None:
        store = PreferencesStore(tmp_path / "preferences.json")
        store.save(ViewerPreferences(enable_hand_tool_on_load=True, cursor_tool_on_load=1))
        preferences = Preferences(store)

        assert await preferences.get("enableHandToolOnLoad") is True
        assert await preferences.get("cursorToolOnLoad") == 1

    @pytest.mark.asyncio
    async def test_get_uses_supplied_snapshot(self, tmp_path: Path) -> None:
        store = PreferencesStore(tmp_path / "preferences.json")
        preferences = Preferences(store, ViewerPreferences(theme="dark"))

        assert await preferences.get("theme") == "dark"
        assert not store.path.exists()

    @pytest.mark.asyncio
    async def test_get_unknown_key_raises(self, tmp_path: Path) -> None:
        preferences = Preferences(PreferencesStore(tmp_path / "preferences.json"))

        with pytest.raises(KeyError, match="zoomLevel"):
            await preferences.get("zoomLevel")

    def test_set_writes_through(self, tmp_path: Path) -> None:
        store = PreferencesStore(tmp_path / "preferences.json")
        preferences = Preferences(store)

        preferences.set("cursorToolOnLoad", 1)
        preferences.set("enableHandToolOnLoad", False)

        assert preferences.snapshot().cursor_tool_on_load == 1
        assert store.load() == ViewerPreferences(cursor_tool_on_load=1)

    def test_set_unknown_key_raises(self, tmp_path: Path) -> None:
        store = PreferencesStore(tmp_path / "preferences.json")
        preferences = Preferences(store)

        with pytest.raises(KeyError):
            preferences.set("zoomLevel", 3)

        assert not store.path.exists()

    def test_set_keeps_run_overrides_off_disk(
        self,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        store = PreferencesStore(tmp_path / "preferences.json")
        store.save(ViewerPreferences(theme="light"))
        monkeypatch.setenv("FOLIO_CURSOR_TOOL", "1")
        loaded = store.load(overrides={"theme": "dark"})
        preferences = Preferences(store, loaded)

        preferences.set("windowGeometry", "abcd")

        persisted = store.load_persisted()
        assert persisted.theme == "light"
        assert persisted.cursor_tool_on_load == 0
        assert persisted.window_geometry == "abcd"
        snapshot = preferences.snapshot()
        assert snapshot.theme == "dark"
        assert snapshot.cursor_tool_on_load == 1
        assert snapshot.window_geometry == "abcd"


def test_load_persisted_ignores_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    store = PreferencesStore(tmp_path / "preferences.json")
    store.save(ViewerPreferences(theme="light"))
    monkeypatch.setenv("FOLIO_THEME", "dark")

    assert store.load().theme == "dark"
    assert store.load_persisted().theme == "light"
