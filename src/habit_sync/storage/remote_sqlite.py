# src/habit_sync/storage/remote_sqlite.py

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import sqlite3
import time
from pathlib import Path
from typing import Any

from ..errors import RemoteUnavailableError

logger = logging.getLogger(__name__)


class SqliteRemoteStore:
    """
    Account-keyed SQLite table used as the remote store.

    One row per account:
      habit_records(account_id UNIQUE, data JSON TEXT, updated_at REAL)

    The schema is migration-safe (create if missing, add missing columns).
    Each call opens its own connection, so the blocking work can run in a
    worker thread via asyncio.to_thread.
    """

    def __init__(self, db_path: str | Path = "remote.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        try:
            total = self.count_records()
        except sqlite3.Error:
            total = -1
        logger.info("SqliteRemoteStore ready db=%s records=%s", self._db_path, total)

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS habit_records (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    account_id TEXT NOT NULL UNIQUE,
                    data TEXT NOT NULL DEFAULT '{}',
                    updated_at REAL NOT NULL DEFAULT 0
                )
                """
            )

            cur.execute("PRAGMA table_info(habit_records)")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE habit_records ADD COLUMN {name} {decl}")
                logger.info("SqliteRemoteStore migration: added column %s", name)

            add_col("data", "TEXT NOT NULL DEFAULT '{}'")
            add_col("updated_at", "REAL NOT NULL DEFAULT 0")

            cur.execute(
                "CREATE INDEX IF NOT EXISTS idx_habit_records_account_updated "
                "ON habit_records(account_id, updated_at)"
            )
            conn.commit()
        finally:
            conn.close()

    # ---- blocking API ----

    def count_records(self) -> int:
        conn = self._get_conn()
        try:
            (n,) = conn.execute("SELECT COUNT(*) FROM habit_records").fetchone()
            return int(n)
        finally:
            conn.close()

    def upsert_sync(
        self,
        account_id: str,
        data: dict[str, Any],
        updated_at: float | None = None,
    ) -> bool:
        """
        Write the account record unless the stored one carries a newer updated_at.

        updated_at should be taken when the push starts: a write that outlives its
        caller's timeout then cannot overwrite a later push. Returns False if skipped.
        """
        if not account_id:
            raise ValueError("account_id is required")
        stamp = time.time() if updated_at is None else float(updated_at)
        payload = json.dumps(data, ensure_ascii=False)
        conn = self._get_conn()
        try:
            cur = conn.execute(
                """
                INSERT INTO habit_records(account_id, data, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(account_id) DO UPDATE SET
                    data = excluded.data,
                    updated_at = excluded.updated_at
                WHERE excluded.updated_at >= habit_records.updated_at
                """,
                (account_id, payload, stamp),
            )
            conn.commit()
            written = cur.rowcount > 0
        finally:
            conn.close()
        if not written:
            logger.warning("Stale remote write skipped account=%s (a newer push already landed)", account_id)
            return False
        logger.debug("Remote record upserted account=%s bytes=%d", account_id, len(payload))
        return True

    def fetch_latest_sync(self, account_id: str) -> dict[str, Any] | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                """
                SELECT data
                FROM habit_records
                WHERE account_id = ?
                ORDER BY updated_at DESC
                    LIMIT 1
                """,
                (account_id,),
            ).fetchone()
        finally:
            conn.close()
        if row is None:
            return None
        try:
            val = json.loads(row["data"])
        except ValueError:
            logger.warning("Remote record for account=%s is not valid JSON", account_id)
            return None
        return val if isinstance(val, dict) else None

    def delete_sync(self, account_id: str) -> None:
        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM habit_records WHERE account_id = ?", (account_id,))
            conn.commit()
        finally:
            conn.close()

    # ---- RemoteBackend ----

    async def upsert(self, account_id: str, data: dict[str, Any]) -> None:
        # Stamp before the worker thread starts; a timed-out call may still commit later.
        stamp = time.time()
        try:
            await asyncio.to_thread(self.upsert_sync, account_id, data, stamp)
        except sqlite3.Error as e:
            raise RemoteUnavailableError(f"SQLite upsert failed: {e}") from e

    async def fetch_latest(self, account_id: str) -> dict[str, Any] | None:
        try:
            return await asyncio.to_thread(self.fetch_latest_sync, account_id)
        except sqlite3.Error as e:
            raise RemoteUnavailableError(f"SQLite fetch failed: {e}") from e

    async def delete(self, account_id: str) -> None:
        try:
            await asyncio.to_thread(self.delete_sync, account_id)
        except sqlite3.Error as e:
            raise RemoteUnavailableError(f"SQLite delete failed: {e}") from e

    async def close(self) -> None:
        """No persistent connections to close."""
        return
