"""Tests covering the application bootstrap helpers."""

from __future__ import annotations

import asyncio
import io
import json
import sys
from pathlib import Path

import pytest

from folio import app
from folio.services.preferences import PreferencesStore, ViewerPreferences


@pytest.fixture
def _quiet_logging(monkeypatch: pytest.MonkeyPatch) -> list[bool]:
    calls: list[bool] = []
    monkeypatch.setattr(app, "configure_logging", calls.append)
    monkeypatch.setattr(sys, "argv", ["folio"])
    return calls


def test_drain_event_loop_cancels_pending_tasks() -> None:
    loop = asyncio.new_event_loop()

    cancellation_flag = {"called": False}

    async def pending() -> None:
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:  # pragma: no cover - cancellation path exercised
            cancellation_flag["called"] = True
            raise

    task = loop.create_task(pending())
    loop.run_until_complete(asyncio.sleep(0))

    try:
        app._drain_event_loop(loop)
        assert cancellation_flag["called"] is True
        assert task.cancelled()
    finally:
        loop.close()


def test_drain_event_loop_ignores_closed_loop() -> None:
    loop = asyncio.new_event_loop()
    loop.close()

    app._drain_event_loop(loop)


def test_coerce_cli_overrides_casts_types() -> None:
    overrides = app._coerce_cli_overrides(
        [
            "theme=dark",
            "debug_logging=true",
            "cursor_tool_on_load=1",
            "enable_hand_tool_on_load=off",
            "window_geometry=none",
        ]
    )

    assert overrides == {
        "theme": "dark",
        "debug_logging": True,
        "cursor_tool_on_load": 1,
        "enable_hand_tool_on_load": False,
        "window_geometry": None,
    }


@pytest.mark.parametrize(
    "entry",
    ["not_a_preference=value", "theme", "=dark", "cursor_tool_on_load=hand", "debug_logging=maybe"],
)
def test_coerce_cli_overrides_rejects_bad_entries(entry: str) -> None:
    with pytest.raises(ValueError):
        app._coerce_cli_overrides([entry])


def test_load_preferences_falls_back_on_os_error(tmp_path: Path) -> None:
    class _BrokenStore(PreferencesStore):
        def load(self, *, overrides=None):  # type: ignore[override]
            raise PermissionError("denied")

    preferences = app.load_preferences(store=_BrokenStore(tmp_path / "preferences.json"))

    assert preferences == ViewerPreferences()


def test_dump_preferences_reports_sources(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("FOLIO_THEME", "dark")
    store = PreferencesStore(tmp_path / "preferences.json")
    buffer = io.StringIO()

    app._dump_preferences(
        ViewerPreferences(theme="dark", cursor_tool_on_load=1),
        store,
        overrides={"cursor_tool_on_load": 1},
        stream=buffer,
    )

    payload = json.loads(buffer.getvalue())
    assert payload["preferences"]["cursor_tool_on_load"] == 1
    assert payload["preferences"]["theme"] == "dark"
    assert payload["meta"]["path"] == str(store.path)
    assert payload["meta"]["cli_overrides"] == ["cursor_tool_on_load"]
    assert "FOLIO_THEME" in payload["meta"]["environment_variables"]


def test_main_dump_preferences_applies_overrides(
    _quiet_logging: list[bool],
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    path = tmp_path / "preferences.json"
    PreferencesStore(path).save(ViewerPreferences(theme="light"))

    app.main(["--dump-preferences", "--preferences-path", str(path), "--set", "cursor_tool_on_load=1"])

    payload = json.loads(capsys.readouterr().out)
    assert payload["preferences"]["theme"] == "light"
    assert payload["preferences"]["cursor_tool_on_load"] == 1
    assert _quiet_logging == [False]


def test_main_rejects_malformed_override(
    _quiet_logging: list[bool],
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    with pytest.raises(SystemExit) as excinfo:
        app.main(["--preferences-path", str(tmp_path / "p.json"), "--set", "cursor_tool_on_load"])

    assert excinfo.value.code == 2
    assert "Invalid --set override" in capsys.readouterr().err


def test_parse_cli_args_keeps_qt_arguments() -> None:
    args, passthrough = app._parse_cli_args(["--pages", "7", "-style", "fusion"])

    assert args.pages == 7
    assert args.dump_preferences is False
    assert passthrough == ["-style", "fusion"]
