# src/habit_sync/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The store and the sync orchestrator depend on Protocols instead of concrete
implementations. This keeps the local file, the remote backend and the auth
provider swappable and makes testing easier.
"""

from typing import Any, Callable, Protocol

from .models import Account, AppState

Clock = Callable[[], int]
# Epoch milliseconds.

Notifier = Callable[[str], None]
# User-visible warnings (console line, toast, ...).

AuthListener = Callable[[Account | None], None]


class LocalRepo(Protocol):
    """Synchronous single-slot storage of the whole AppState."""

    def save(self, state: AppState) -> None: ...
    def load(self) -> AppState: ...


class RemoteBackend(Protocol):
    """
    Account-keyed record store. One record per account; upsert replaces it.

    Implementations raise RemoteUnavailableError on transport/backend failures.
    """

    async def upsert(self, account_id: str, data: dict[str, Any]) -> None: ...
    async def fetch_latest(self, account_id: str) -> dict[str, Any] | None: ...
    async def delete(self, account_id: str) -> None: ...
    async def close(self) -> None: ...


class AuthProvider(Protocol):
    def get_current_account(self) -> Account | None: ...
    def on_auth_change(self, callback: AuthListener) -> None: ...
    def sign_out(self) -> None: ...
