# src/habit_sync/storage/local_store.py

from __future__ import annotations

import contextlib
import json
import logging
import os
from pathlib import Path

from ..core.models import AppState
from ..errors import StorageQuotaError

logger = logging.getLogger(__name__)


class LocalStateStore:
    """
    Single JSON document on disk holding the whole AppState.

    - save() is atomic (tmp file + os.replace); any OSError becomes StorageQuotaError.
    - load() never raises: a missing or corrupt file yields an empty state stamped
      at epoch 0, so any stored or remote state is newer than an unused slot.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def save(self, state: AppState) -> None:
        payload = json.dumps(state.to_dict(), ensure_ascii=False)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(payload, "utf-8")
            os.replace(tmp, self._path)
        except OSError as e:
            with contextlib.suppress(OSError):
                tmp.unlink()
            raise StorageQuotaError(f"Failed to write local state to {self._path}: {e}") from e

        with contextlib.suppress(OSError):
            # Best-effort: keep personal data private on disk.
            os.chmod(self._path, 0o600)
        logger.debug("Saved local state: %d tasks to %s", len(state.tasks), self._path)

    def load(self) -> AppState:
        if not self._path.exists():
            return AppState.empty(0)
        try:
            state = AppState.from_dict(json.loads(self._path.read_text("utf-8")))
        except (OSError, ValueError):
            logger.warning("Failed to load local state from %s; starting empty", self._path, exc_info=True)
            return AppState.empty(0)
        logger.info("Loaded local state: %d tasks from %s", len(state.tasks), self._path)
        return state

    def clear(self) -> None:
        with contextlib.suppress(FileNotFoundError):
            self._path.unlink()
