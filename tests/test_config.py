# tests/test_config.py

from __future__ import annotations

from pathlib import Path

import pytest

from habit_sync.config import Settings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "HABIT_DATA_DIR",
        "HABIT_STATE_PATH",
        "HABIT_REMOTE_BACKEND",
        "HABIT_REMOTE_DB_PATH",
        "HABIT_REMOTE_TABLE",
        "HABIT_REMOTE_TIMEOUT_SECONDS",
        "HABIT_ACCOUNT_ID",
        "HABIT_PUSH_DEBOUNCE_SECONDS",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults_are_local_only() -> None:
    s = Settings.from_env()
    assert s.remote_backend == "none"
    assert s.data_dir == Path(".local/habit")
    assert s.state_path == Path(".local/habit/habit_state.json")
    assert s.remote_table == "habit_data"
    assert s.remote_timeout_seconds == 10.0
    assert s.push_debounce_seconds == 1.0
    assert s.account_id == ""


def test_env_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("HABIT_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("HABIT_REMOTE_BACKEND", " SQLite ")
    monkeypatch.setenv("HABIT_ACCOUNT_ID", " acct-1 ")
    monkeypatch.setenv("HABIT_PUSH_DEBOUNCE_SECONDS", "0.25")

    s = Settings.from_env()
    assert s.remote_backend == "sqlite"
    assert s.remote_db_path == tmp_path / "remote.sqlite3"
    assert s.account_id == "acct-1"
    assert s.push_debounce_seconds == 0.25


def test_bad_values_fall_back(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HABIT_REMOTE_BACKEND", "firebase")
    monkeypatch.setenv("HABIT_REMOTE_TIMEOUT_SECONDS", "0.01")
    monkeypatch.setenv("HABIT_PUSH_DEBOUNCE_SECONDS", "soon")

    s = Settings.from_env()
    assert s.remote_backend == "none"
    assert s.remote_timeout_seconds == 0.5
    assert s.push_debounce_seconds == 1.0
