# src/habit_sync/core/store.py

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date

from ..errors import NotFoundError, ValidationError
from . import dates
from .models import ICON_OPTIONS, AppState, DayStatus, Task, generate_id, now_ms, strip_icon_prefix
from .ports import Clock

logger = logging.getLogger(__name__)

MAX_TASK_NAME_LENGTH = 100

ChangeListener = Callable[[AppState], None]


def normalize_icon(icon: str) -> str:
    """Validate an icon name; the legacy 'fa-' prefix is accepted."""
    raw = strip_icon_prefix(icon)
    if raw not in ICON_OPTIONS:
        raise ValidationError(f"Unknown icon: {icon!r}")
    return raw


def normalize_name(name: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("Task name is required")
    if len(cleaned) > MAX_TASK_NAME_LENGTH:
        raise ValidationError(f"Task name is longer than {MAX_TASK_NAME_LENGTH} characters")
    return cleaned


class HabitStore:
    """
    In-memory state store: the single source of truth for a running session.

    Every mutation:
    - stamps last_modified with the injected clock,
    - notifies listeners with a detached snapshot (persistence lives there).

    replace() adopts a whole state (load/merge results) without stamping or notifying.
    """

    def __init__(
        self,
        state: AppState | None = None,
        *,
        clock: Clock = now_ms,
        today: Callable[[], date] = dates.today,
    ) -> None:
        self._clock = clock
        self._today = today
        self._state = state.copy() if state is not None else AppState.empty(clock())
        self._listeners: list[ChangeListener] = []

    # ---- listeners ----

    def add_listener(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    def _touch(self) -> None:
        self._state.last_modified = int(self._clock())
        snap = self._state.copy()
        for listener in list(self._listeners):
            try:
                listener(snap)
            except Exception:
                logger.exception("State change listener failed")

    # ---- reads ----

    @property
    def state(self) -> AppState:
        """Live state; treat as read-only. Use snapshot() to hand it off."""
        return self._state

    def snapshot(self) -> AppState:
        return self._state.copy()

    def get_task(self, task_id: str) -> Task:
        task = self._state.find_task(task_id)
        if task is None:
            raise NotFoundError(task_id)
        return task

    def get_day_status(self, task_id: str, day: date | str) -> DayStatus:
        key = dates.to_date_key(day)
        return self._state.task_states.get(task_id, {}).get(key, DayStatus.EMPTY)

    # ---- whole-state transitions ----

    def replace(self, state: AppState) -> None:
        self._state = state.copy()

    def reset(self) -> None:
        self._state = AppState.empty(self._clock())
        self._touch()

    def import_state(self, state: AppState) -> None:
        self._state = state.copy()
        self._touch()

    # ---- task operations ----

    def create_task(self, name: str, icon: str) -> Task:
        task = Task(
            id=generate_id(),
            name=normalize_name(name),
            icon=normalize_icon(icon),
            created_at=dates.format_date(self._today()),
        )
        self._state.tasks.append(task)
        self._state.task_states[task.id] = {}
        logger.debug("Task created id=%s icon=%s", task.id, task.icon)
        self._touch()
        return task

    def update_task(self, task_id: str, name: str, icon: str) -> None:
        clean_name = normalize_name(name)
        clean_icon = normalize_icon(icon)
        task = self.get_task(task_id)
        task.name = clean_name
        task.icon = clean_icon
        self._touch()

    def delete_task(self, task_id: str) -> None:
        task = self.get_task(task_id)
        self._state.tasks.remove(task)
        self._state.task_states.pop(task_id, None)
        logger.debug("Task deleted id=%s", task_id)
        self._touch()

    def reorder_task(self, task_id: str, target_id: str) -> None:
        if task_id == target_id:
            return
        ids = self._state.task_ids()
        if task_id not in ids or target_id not in ids:
            return

        from_idx = ids.index(task_id)
        to_idx = ids.index(target_id)
        task = self._state.tasks.pop(from_idx)
        self._state.tasks.insert(to_idx, task)
        self._touch()

    # ---- day statuses ----

    def set_day_status(self, task_id: str, day: date | str, status: DayStatus | str) -> None:
        self.get_task(task_id)
        key = dates.to_date_key(day)
        try:
            value = DayStatus(status)
        except ValueError as e:
            raise ValidationError(f"Unknown day status: {status!r}") from e
        self._state.task_states.setdefault(task_id, {})[key] = value
        self._touch()

    def cycle_day_status(self, task_id: str, day: date | str) -> DayStatus:
        new_status = self.get_day_status(task_id, day).next()
        self.set_day_status(task_id, day, new_status)
        return new_status
