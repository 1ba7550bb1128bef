# src/habit_sync/sync/remote.py

from __future__ import annotations

"""
Remote persistence.

Wraps a RemoteBackend with:
- auth gating (no account or no backend -> no-op),
- a timeout on every backend call (timeout == RemoteUnavailableError),
- single-flight pushes with one latest-wins pending slot.

Failures are logged and swallowed here: the app keeps running local-only and
the next mutation schedules a fresh push.
"""

import asyncio
import logging
from collections.abc import Awaitable
from enum import Enum
from typing import Any, TypeVar

from ..core.models import AppState
from ..core.ports import AuthProvider, RemoteBackend
from ..errors import RemoteUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PushPhase(str, Enum):
    """
    IDLE          -> nothing in flight
    IN_FLIGHT     -> one upsert running, no newer snapshot waiting
    FLUSH_PENDING -> one upsert running and exactly one newer snapshot waiting
    """

    IDLE = "idle"
    IN_FLIGHT = "in_flight"
    FLUSH_PENDING = "flush_pending"


class PushResult(str, Enum):
    OK = "ok"
    QUEUED = "queued"
    SKIPPED = "skipped"
    FAILED = "failed"


class RemotePersistence:
    def __init__(
        self,
        backend: RemoteBackend | None,
        auth: AuthProvider,
        *,
        timeout_seconds: float = 10.0,
    ) -> None:
        self._backend = backend
        self._auth = auth
        self._timeout = max(0.01, float(timeout_seconds))
        self._phase = PushPhase.IDLE
        self._pending: dict[str, Any] | None = None

    @property
    def phase(self) -> PushPhase:
        return self._phase

    @property
    def configured(self) -> bool:
        return self._backend is not None

    def _account_id(self) -> str | None:
        account = self._auth.get_current_account()
        return account.id if account is not None else None

    async def _call(self, what: str, aw: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(aw, timeout=self._timeout)
        except TimeoutError as e:
            raise RemoteUnavailableError(f"Remote {what} timed out after {self._timeout:.1f}s") from e

    # ---- push ----

    async def push(self, state: AppState) -> PushResult:
        account_id = self._account_id()
        if account_id is None or self._backend is None:
            return PushResult.SKIPPED

        doc: dict[str, Any] | None = state.to_dict()

        if self._phase is not PushPhase.IDLE:
            # Latest snapshot supersedes whatever was waiting.
            self._pending = doc
            self._phase = PushPhase.FLUSH_PENDING
            logger.debug("Push queued behind in-flight upsert (account=%s)", account_id)
            return PushResult.QUEUED

        self._phase = PushPhase.IN_FLIGHT
        result = PushResult.OK
        try:
            while doc is not None:
                if not await self._upsert(account_id, doc):
                    result = PushResult.FAILED

                doc, self._pending = self._pending, None
                if doc is None:
                    break

                self._phase = PushPhase.IN_FLIGHT
                next_account = self._account_id()
                if next_account is None:
                    logger.info("Dropping queued push: signed out")
                    break
                account_id = next_account
        finally:
            self._pending = None
            self._phase = PushPhase.IDLE
        return result

    async def _upsert(self, account_id: str, doc: dict[str, Any]) -> bool:
        assert self._backend is not None
        try:
            await self._call("upsert", self._backend.upsert(account_id, doc))
        except RemoteUnavailableError as e:
            logger.warning("Remote push failed (account=%s): %s", account_id, e)
            return False
        except Exception:
            logger.exception("Remote push crashed (account=%s)", account_id)
            return False
        logger.info("Remote push ok (account=%s tasks=%d)", account_id, len(doc.get("tasks") or []))
        return True

    # ---- pull ----

    async def pull(self) -> AppState | None:
        """Newest remote snapshot, or None (signed out, no record, malformed, failure)."""
        try:
            return await self.fetch_remote()
        except RemoteUnavailableError as e:
            logger.warning("Remote pull failed: %s", e)
            return None

    async def fetch_remote(self) -> AppState | None:
        """Like pull(), but backend failures raise RemoteUnavailableError."""
        account_id = self._account_id()
        if account_id is None or self._backend is None:
            return None

        raw = await self._call("fetch", self._backend.fetch_latest(account_id))
        if raw is None:
            logger.info("No remote record yet (account=%s)", account_id)
            return None

        try:
            state = AppState.from_dict(raw)
        except ValueError:
            logger.warning("Remote record for account=%s is malformed; ignoring", account_id)
            return None
        logger.info("Remote pull ok (account=%s tasks=%d)", account_id, len(state.tasks))
        return state

    # ---- account deletion ----

    async def delete_remote_record(self, account_id: str) -> bool:
        if self._backend is None:
            return True
        try:
            await self._call("delete", self._backend.delete(account_id))
        except RemoteUnavailableError as e:
            logger.warning("Remote delete failed (account=%s): %s", account_id, e)
            return False
        logger.info("Remote record deleted (account=%s)", account_id)
        return True

    async def close(self) -> None:
        if self._backend is not None:
            await self._backend.close()
