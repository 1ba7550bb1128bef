# src/habit_sync/errors.py

"""
Error taxonomy for the habit core.

None of these is fatal to the process:
- ValidationError: bad user input (task name/icon/date); shown as a message.
- NotFoundError: operation on an unknown task id (caller/UI bug).
- StorageQuotaError: local write failed; in-memory state stays authoritative.
- RemoteUnavailableError: remote backend failed or timed out; we go local-only.
"""

from __future__ import annotations


class HabitSyncError(Exception):
    """Base class for all habit_sync errors."""


class ValidationError(HabitSyncError, ValueError):
    pass


class NotFoundError(HabitSyncError, LookupError):
    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id


class StorageQuotaError(HabitSyncError, OSError):
    pass


class RemoteUnavailableError(HabitSyncError, ConnectionError):
    pass
