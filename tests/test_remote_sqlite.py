# tests/test_remote_sqlite.py

from __future__ import annotations

import asyncio
import sqlite3
import time
from pathlib import Path

import pytest

from habit_sync.core.models import Account, AppState, Task
from habit_sync.storage.remote_sqlite import SqliteRemoteStore
from habit_sync.sync.auth import LocalAuth
from habit_sync.sync.remote import PushResult, RemotePersistence


def test_creates_schema_and_upserts_one_row_per_account(tmp_path: Path) -> None:
    store = SqliteRemoteStore(tmp_path / "remote.sqlite3")
    assert store.count_records() == 0

    store.upsert_sync("alice", {"tasks": [], "taskStates": {}, "lastModified": 1})
    store.upsert_sync("alice", {"tasks": [{"id": "t1"}], "taskStates": {}, "lastModified": 2})
    store.upsert_sync("bob", {"tasks": [], "taskStates": {}, "lastModified": 3})

    assert store.count_records() == 2
    latest = store.fetch_latest_sync("alice")
    assert latest is not None
    assert latest["lastModified"] == 2
    assert store.fetch_latest_sync("carol") is None


def test_upsert_requires_account(tmp_path: Path) -> None:
    store = SqliteRemoteStore(tmp_path / "remote.sqlite3")
    with pytest.raises(ValueError):
        store.upsert_sync("", {})


def test_migrates_table_missing_columns(tmp_path: Path) -> None:
    db = tmp_path / "old.sqlite3"
    conn = sqlite3.connect(db)
    conn.execute(
        "CREATE TABLE habit_records (id INTEGER PRIMARY KEY AUTOINCREMENT, account_id TEXT NOT NULL UNIQUE)"
    )
    conn.commit()
    conn.close()

    store = SqliteRemoteStore(db)
    store.upsert_sync("alice", {"tasks": [], "taskStates": {}, "lastModified": 7})

    conn = sqlite3.connect(db)
    cols = {row[1] for row in conn.execute("PRAGMA table_info(habit_records)")}
    conn.close()
    assert {"data", "updated_at"} <= cols
    assert store.fetch_latest_sync("alice") == {"tasks": [], "taskStates": {}, "lastModified": 7}


def test_non_object_payload_reads_as_missing(tmp_path: Path) -> None:
    db = tmp_path / "remote.sqlite3"
    store = SqliteRemoteStore(db)
    conn = sqlite3.connect(db)
    conn.execute("INSERT INTO habit_records(account_id, data, updated_at) VALUES ('x', 'not json', 1)")
    conn.execute("INSERT INTO habit_records(account_id, data, updated_at) VALUES ('y', '[1, 2]', 1)")
    conn.commit()
    conn.close()

    assert store.fetch_latest_sync("x") is None
    assert store.fetch_latest_sync("y") is None


@pytest.mark.asyncio
async def test_async_api(tmp_path: Path) -> None:
    store = SqliteRemoteStore(tmp_path / "remote.sqlite3")
    doc = {"tasks": [], "taskStates": {}, "lastModified": 9}

    await store.upsert("alice", doc)
    assert await store.fetch_latest("alice") == doc

    await store.delete("alice")
    assert await store.fetch_latest("alice") is None
    await store.close()


def test_older_write_never_replaces_newer_record(tmp_path: Path) -> None:
    store = SqliteRemoteStore(tmp_path / "remote.sqlite3")

    store.upsert_sync("a1", {"tasks": [], "taskStates": {}, "lastModified": "new"}, updated_at=200.0)
    store.upsert_sync("a1", {"tasks": [], "taskStates": {}, "lastModified": "old"}, updated_at=100.0)

    latest = store.fetch_latest_sync("a1")
    assert latest is not None
    assert latest["lastModified"] == "new"


class _SlowFirstWriteStore(SqliteRemoteStore):
    """The first upsert blocks its worker thread past the caller's timeout."""

    def __init__(self, db_path: Path) -> None:
        super().__init__(db_path)
        self.calls = 0

    def upsert_sync(self, account_id, data, updated_at=None):
        self.calls += 1
        if self.calls == 1:
            time.sleep(0.5)
        return super().upsert_sync(account_id, data, updated_at)


@pytest.mark.asyncio
async def test_timed_out_push_cannot_clobber_later_push(tmp_path: Path) -> None:
    store = _SlowFirstWriteStore(tmp_path / "remote.sqlite3")
    auth = LocalAuth(Account(id="a1", email="a@example.com"))
    remote = RemotePersistence(store, auth, timeout_seconds=0.1)

    old = AppState(tasks=[Task(id="t1", name="old", icon="star", created_at="2024-01-01")])
    new = AppState(tasks=[Task(id="t1", name="new", icon="star", created_at="2024-01-01")])

    assert await remote.push(old) is PushResult.FAILED
    assert await remote.push(new) is PushResult.OK

    # Let the abandoned worker thread finish its write attempt.
    await asyncio.sleep(0.8)

    latest = store.fetch_latest_sync("a1")
    assert latest is not None
    assert [t["name"] for t in latest["tasks"]] == ["new"]
