# src/habit_sync/core/merge.py

"""
Local/remote reconciliation.

Policy:
- snapshots more than MERGE_WINDOW_MS apart: the newer one wins outright
  (one side is assumed stale, not concurrently edited);
- otherwise both are combined: remote task order first, local-only tasks
  appended, day statuses overlaid per date with local winning.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from .models import AppState, DayStatus, now_ms

logger = logging.getLogger(__name__)

MERGE_WINDOW_MS = 5000


def merge_states(
    local: AppState | None,
    remote: AppState | None,
    *,
    now: int | None = None,
) -> AppState | None:
    """Return the snapshot to adopt. Inputs are never mutated."""
    if local is None:
        return remote
    if remote is None:
        return local

    local_time = int(local.last_modified or 0)
    remote_time = int(remote.last_modified or 0)

    if abs(remote_time - local_time) > MERGE_WINDOW_MS:
        if remote_time > local_time:
            logger.info("Merge: remote is newer by %d ms, taking remote", remote_time - local_time)
            return remote.copy()
        logger.info("Merge: local is newer by %d ms, taking local", local_time - remote_time)
        return local.copy()

    merged = remote.copy()

    seen = set(merged.task_ids())
    for task in local.tasks:
        if task.id not in seen:
            merged.tasks.append(replace(task))
            seen.add(task.id)

    for task_id, local_days in local.task_states.items():
        remote_days = merged.task_states.get(task_id)
        if remote_days is None:
            merged.task_states[task_id] = dict(local_days)
            continue
        combined: dict[str, DayStatus] = dict(remote_days)
        combined.update(local_days)
        merged.task_states[task_id] = combined

    merged.last_modified = now_ms() if now is None else int(now)
    logger.info(
        "Merge: combined concurrent snapshots (delta=%d ms) tasks=%d",
        remote_time - local_time,
        len(merged.tasks),
    )
    return merged
