# src/habit_sync/sync/auth.py

from __future__ import annotations

import logging

from ..core.models import Account, now_ms
from ..core.ports import AuthListener, Clock

logger = logging.getLogger(__name__)


class LocalAuth:
    """
    In-process authentication collaborator.

    Real sign-in flows (OAuth, magic links) live outside the core; this keeps
    the current account and fans out sign-in/sign-out transitions to listeners.
    """

    def __init__(self, account: Account | None = None, *, clock: Clock = now_ms) -> None:
        self._account = account
        self._clock = clock
        self._listeners: list[AuthListener] = []

    def get_current_account(self) -> Account | None:
        return self._account

    def on_auth_change(self, callback: AuthListener) -> None:
        self._listeners.append(callback)

    def sign_in(self, account_id: str, email: str = "") -> Account:
        account_id = (account_id or "").strip()
        if not account_id:
            raise ValueError("account_id is required")
        account = Account(id=account_id, email=(email or "").strip(), last_sign_in=self._clock())
        self._account = account
        logger.info("Signed in account=%s", account_id)
        self._emit(account)
        return account

    def sign_out(self) -> None:
        if self._account is None:
            return
        logger.info("Signed out account=%s", self._account.id)
        self._account = None
        self._emit(None)

    def _emit(self, account: Account | None) -> None:
        for cb in list(self._listeners):
            try:
                cb(account)
            except Exception:
                logger.exception("Auth listener failed")
