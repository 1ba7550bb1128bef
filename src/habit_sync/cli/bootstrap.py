# src/habit_sync/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the store, local file, remote backend and auth into one HabitApp.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date

from ..config import get_settings
from ..core import dates
from ..core.models import Account, now_ms
from ..core.ports import Notifier, RemoteBackend
from ..core.store import HabitStore
from ..storage.local_store import LocalStateStore
from ..storage.remote_rest import RestRemoteStore
from ..storage.remote_sqlite import SqliteRemoteStore
from ..sync.auth import LocalAuth
from ..sync.orchestrator import SyncOrchestrator
from ..sync.remote import RemotePersistence

logger = logging.getLogger(__name__)


@dataclass
class HabitApp:
    settings: object
    store: HabitStore
    local: LocalStateStore
    remote: RemotePersistence
    auth: LocalAuth
    sync: SyncOrchestrator
    today: Callable[[], date] = field(default=dates.today)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.state_path.parent.mkdir(parents=True, exist_ok=True)


def build_remote_backend(settings) -> RemoteBackend | None:
    """Pick the configured remote backend; misconfiguration degrades to local-only."""
    kind = str(getattr(settings, "remote_backend", "none") or "none").lower()
    if kind == "sqlite":
        return SqliteRemoteStore(settings.remote_db_path)
    if kind == "rest":
        try:
            return RestRemoteStore(
                settings.remote_url,
                api_key=settings.remote_api_key,
                table=settings.remote_table,
                timeout_seconds=settings.remote_timeout_seconds,
            )
        except RuntimeError as e:
            logger.warning("REST remote disabled: %s", e)
            return None
    return None


def create_app(*, settings=None, notify: Notifier | None = None) -> HabitApp:
    """
    Create HabitApp from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    # Configured account is signed in up front (no auth event): start() does the reconcile.
    account: Account | None = None
    if settings.account_id:
        account = Account(id=settings.account_id, email=settings.account_email, last_sign_in=now_ms())

    auth = LocalAuth(account)
    store = HabitStore()
    local = LocalStateStore(settings.state_path)
    remote = RemotePersistence(
        build_remote_backend(settings),
        auth,
        timeout_seconds=settings.remote_timeout_seconds,
    )
    sync = SyncOrchestrator(
        store,
        local,
        remote,
        auth,
        debounce_seconds=settings.push_debounce_seconds,
        notify=notify,
    )
    return HabitApp(
        settings=settings,
        store=store,
        local=local,
        remote=remote,
        auth=auth,
        sync=sync,
    )


async def start_app(app: HabitApp) -> None:
    """Run the start-of-session load/reconcile (the configured account is already signed in)."""
    state = await app.sync.start()
    account = app.auth.get_current_account()
    logger.info(
        "Ready: %d tasks, account=%s, remote=%s",
        len(state.tasks),
        account.id if account is not None else "-",
        "on" if app.remote.configured else "off",
    )
