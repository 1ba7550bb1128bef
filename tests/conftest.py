# tests/conftest.py

from __future__ import annotations

from datetime import date
from pathlib import Path
from types import SimpleNamespace

import pytest

from habit_sync.cli.bootstrap import HabitApp, create_app
from habit_sync.core.store import HabitStore
from habit_sync.storage.local_store import LocalStateStore
from habit_sync.sync.auth import LocalAuth

from .fakes import FakeClock, FakeRemoteBackend

TODAY = date(2024, 1, 10)  # a Wednesday


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def store(clock: FakeClock) -> HabitStore:
    return HabitStore(clock=clock, today=lambda: TODAY)


@pytest.fixture()
def local_store(tmp_path: Path) -> LocalStateStore:
    return LocalStateStore(tmp_path / "habit_state.json")


@pytest.fixture()
def backend() -> FakeRemoteBackend:
    return FakeRemoteBackend()


@pytest.fixture()
def auth(clock: FakeClock) -> LocalAuth:
    return LocalAuth(clock=clock)


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with create_app().

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        data_dir=tmp_path,
        state_path=tmp_path / "habit_state.json",
        remote_backend="sqlite",
        remote_db_path=tmp_path / "remote.sqlite3",
        remote_url="",
        remote_api_key="",
        remote_table="habit_data",
        remote_timeout_seconds=5.0,
        account_id="",
        account_email="",
        push_debounce_seconds=0.01,
    )


@pytest.fixture()
def app(settings: SimpleNamespace) -> HabitApp:
    """HabitApp wired with real local/SQLite stores and a fixed 'today'."""
    habit_app = create_app(settings=settings)
    habit_app.today = lambda: TODAY
    return habit_app
