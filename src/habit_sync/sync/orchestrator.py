# src/habit_sync/sync/orchestrator.py

from __future__ import annotations

"""
Sync orchestrator.

Drives load -> reconcile -> persist around session start and auth transitions:
- start(): adopt local state; if signed in, pull, merge, adopt, save locally
  (no echo push). No remote record + local tasks -> first-time upload.
- sign-in: same reconciliation against the current in-memory state.
- sign-out: pending debounced push is dropped; data stays as is.
- every store mutation: immediate local save, then a trailing-edge debounced push.
"""

import asyncio
import logging
from enum import Enum
from typing import Any

from ..core.merge import merge_states
from ..core.models import Account, AppState, now_ms
from ..core.ports import AuthProvider, Clock, LocalRepo, Notifier
from ..core.store import HabitStore
from ..core.transfer import build_export, parse_import
from ..errors import RemoteUnavailableError, StorageQuotaError, ValidationError
from .remote import PushResult, RemotePersistence

logger = logging.getLogger(__name__)

QUOTA_WARNING = (
    "Local storage is full or unavailable. Changes are kept in memory; "
    "cloud sync is now the only durable copy."
)


class SyncPhase(str, Enum):
    IDLE = "idle"
    PULLING = "pulling"
    MERGING = "merging"
    PUSHING = "pushing"


class SyncOrchestrator:
    def __init__(
        self,
        store: HabitStore,
        local: LocalRepo,
        remote: RemotePersistence,
        auth: AuthProvider,
        *,
        debounce_seconds: float = 1.0,
        notify: Notifier | None = None,
        clock: Clock = now_ms,
    ) -> None:
        self._store = store
        self._local = local
        self._remote = remote
        self._auth = auth
        self._debounce = max(0.0, float(debounce_seconds))
        self._notify_cb = notify
        self._clock = clock

        self._phase = SyncPhase.IDLE
        self._timer: asyncio.TimerHandle | None = None
        self._push_tasks: set[asyncio.Task[PushResult]] = set()
        self._auth_task: asyncio.Task[None] | None = None

        store.add_listener(self._on_local_change)
        auth.on_auth_change(self._on_auth_change)

    # ---- introspection ----

    @property
    def phase(self) -> SyncPhase:
        return self._phase

    @property
    def push_scheduled(self) -> bool:
        return self._timer is not None

    @property
    def store(self) -> HabitStore:
        return self._store

    @property
    def remote(self) -> RemotePersistence:
        return self._remote

    def current_account(self) -> Account | None:
        return self._auth.get_current_account()

    def _notify(self, text: str) -> None:
        if self._notify_cb is None:
            return
        try:
            self._notify_cb(text)
        except Exception:
            logger.debug("Notifier failed.", exc_info=True)

    # ---- session start / auth transitions ----

    async def start(self) -> AppState:
        local = self._local.load()
        self._store.replace(local)
        logger.info("Session start: %d local tasks", len(local.tasks))
        await self._reconcile("start")
        return self._store.snapshot()

    async def _reconcile(self, reason: str) -> None:
        account = self._auth.get_current_account()
        if account is None or not self._remote.configured:
            return

        self._phase = SyncPhase.PULLING
        try:
            try:
                remote_state = await self._remote.fetch_remote()
            except RemoteUnavailableError as e:
                logger.warning("Reconcile (%s): remote unavailable, staying local-only: %s", reason, e)
                return

            current = self._store.snapshot()

            if remote_state is not None:
                self._phase = SyncPhase.MERGING
                merged = merge_states(current, remote_state, now=self._clock())
                assert merged is not None
                self._store.replace(merged)
                self._save_local(merged)
                logger.info(
                    "Reconcile (%s): adopted merged state tasks=%d account=%s",
                    reason,
                    len(merged.tasks),
                    account.id,
                )
                return

            if current.tasks:
                self._phase = SyncPhase.PUSHING
                logger.info("Reconcile (%s): no remote record, uploading local state", reason)
                await self._remote.push(current)
        finally:
            self._phase = SyncPhase.IDLE

    def _on_auth_change(self, account: Account | None) -> None:
        if account is None:
            self._cancel_timer()
            logger.info("Remote sync paused (signed out)")
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("Sign-in outside the event loop; reconcile deferred to start()")
            return
        self._auth_task = loop.create_task(self._reconcile("sign-in"))

    async def wait_idle(self) -> None:
        """Await the reconcile triggered by the latest sign-in, if any."""
        task = self._auth_task
        if task is not None:
            await task

    # ---- local mutations ----

    def _on_local_change(self, state: AppState) -> None:
        self._save_local(state)
        self._schedule_push()

    def _save_local(self, state: AppState) -> bool:
        try:
            self._local.save(state)
        except StorageQuotaError as e:
            logger.warning("Local save failed: %s", e)
            self._notify(QUOTA_WARNING)
            return False
        return True

    def _schedule_push(self) -> None:
        if self._auth.get_current_account() is None or not self._remote.configured:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; remote push not scheduled")
            return

        self._cancel_timer()
        self._timer = loop.call_later(self._debounce, self._fire_push)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _fire_push(self) -> None:
        self._timer = None
        self._spawn_push(self._store.snapshot())

    def _spawn_push(self, state: AppState) -> None:
        task = asyncio.get_running_loop().create_task(self._remote.push(state))
        self._push_tasks.add(task)
        task.add_done_callback(self._push_tasks.discard)

    async def flush(self) -> None:
        """Push a pending debounced change now and wait for in-flight pushes."""
        if self._timer is not None:
            self._cancel_timer()
            self._spawn_push(self._store.snapshot())
        if self._push_tasks:
            await asyncio.gather(*list(self._push_tasks), return_exceptions=True)
        if self._auth_task is not None and not self._auth_task.done():
            await self._auth_task

    async def close(self) -> None:
        try:
            await self.flush()
        finally:
            await self._remote.close()

    # ---- export / import / account deletion ----

    def export_document(self) -> dict[str, Any]:
        return build_export(self._store.snapshot(), self._auth.get_current_account(), now=self._clock())

    def import_document(self, text: str) -> AppState:
        state = parse_import(text)
        self._store.import_state(state)
        logger.info("Imported %d tasks", len(state.tasks))
        return self._store.snapshot()

    async def delete_account(self, confirm_email: str) -> None:
        """
        Delete the remote record, then reset local state and sign out.
        Requires the account email re-typed as confirmation.
        """
        account = self._auth.get_current_account()
        if account is None:
            raise ValidationError("You must be signed in to delete your account")

        expected = (account.email or "").strip().lower()
        if not expected or (confirm_email or "").strip().lower() != expected:
            raise ValidationError("Confirmation email does not match; deletion cancelled")

        # An in-flight push landing after the delete would recreate the record.
        self._cancel_timer()
        if self._push_tasks:
            await asyncio.gather(*list(self._push_tasks), return_exceptions=True)

        if not await self._remote.delete_remote_record(account.id):
            self._notify("Could not reach the server; your account data was not deleted.")
            raise RemoteUnavailableError("Remote delete failed; nothing was removed")

        # Sign out first so the reset below is not pushed.
        self._auth.sign_out()
        self._store.reset()
        logger.info("Account data deleted (account=%s)", account.id)
