# src/habit_sync/core/stats.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta

from ..errors import NotFoundError, ValidationError
from . import dates
from .models import AppState, DayStatus


@dataclass(frozen=True, slots=True)
class TaskStats:
    completed: int
    in_progress: int
    tracked_days: int
    completion_rate: float
    current_streak: int


def _first_day(created_at: str, recorded: list[date], today: date) -> date:
    # created_at is only a lower bound; imported/merged history may predate it.
    try:
        first = dates.parse_date_key(created_at)
    except ValidationError:
        first = today
    if recorded:
        first = min(first, min(recorded))
    return min(first, today)


def task_stats(state: AppState, task_id: str, today: date) -> TaskStats:
    task = state.find_task(task_id)
    if task is None:
        raise NotFoundError(task_id)

    days: dict[date, DayStatus] = {}
    for key, status in state.task_states.get(task_id, {}).items():
        try:
            d = dates.parse_date_key(key)
        except ValidationError:
            continue
        if d <= today:
            days[d] = status

    first = _first_day(task.created_at, list(days), today)
    tracked = (today - first).days + 1

    completed = sum(1 for s in days.values() if s is DayStatus.COMPLETED)
    in_progress = sum(1 for s in days.values() if s is DayStatus.IN_PROGRESS)

    # Today still open does not break the streak.
    cursor = today if days.get(today) is DayStatus.COMPLETED else today - timedelta(days=1)
    streak = 0
    while days.get(cursor) is DayStatus.COMPLETED:
        streak += 1
        cursor -= timedelta(days=1)

    return TaskStats(
        completed=completed,
        in_progress=in_progress,
        tracked_days=tracked,
        completion_rate=completed / tracked if tracked > 0 else 0.0,
        current_streak=streak,
    )
