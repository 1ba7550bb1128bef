# src/habit_sync/core/models.py

from __future__ import annotations

import copy
import math
import random
import string
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any

ICON_OPTIONS: tuple[str, ...] = (
    "star",
    "heart",
    "book",
    "dumbbell",
    "utensils",
    "leaf",
    "moon",
    "sun",
    "water",
    "running",
    "music",
    "paint-brush",
    "code",
    "camera",
    "smile",
    "tree",
)

DEFAULT_ICON = "star"


def strip_icon_prefix(icon: str) -> str:
    """Canonical icon spelling: lowercase, without the legacy 'fa-' prefix."""
    raw = (icon or "").strip().lower()
    return raw[3:] if raw.startswith("fa-") else raw


_B36 = string.digits + string.ascii_lowercase


def now_ms() -> int:
    return int(time.time() * 1000)


def _to_base36(n: int) -> str:
    if n <= 0:
        return "0"
    out: list[str] = []
    while n:
        n, r = divmod(n, 36)
        out.append(_B36[r])
    return "".join(reversed(out))


def generate_id() -> str:
    """Opaque client-side id: base-36 millis followed by a random base-36 tail."""
    tail = "".join(random.choice(_B36) for _ in range(11))
    return _to_base36(now_ms()) + tail


def parse_timestamp_ms(raw: Any) -> int:
    """
    Accept epoch millis (int/float/numeric string) or an ISO-8601 string.
    Anything else (missing, garbage, non-finite numbers) is epoch 0.
    """
    if raw is None or isinstance(raw, bool):
        return 0
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw) if math.isfinite(raw) else 0
    if isinstance(raw, str):
        s = raw.strip()
        if not s:
            return 0
        try:
            value = float(s)
        except ValueError:
            pass
        else:
            return int(value) if math.isfinite(value) else 0
        try:
            dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
            return int(dt.timestamp() * 1000)
        except (ValueError, OverflowError, OSError):
            return 0
    return 0


class DayStatus(StrEnum):
    """Tri-state completion marker for a (task, date) pair."""

    EMPTY = "empty"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"

    @classmethod
    def from_raw(cls, raw: Any) -> DayStatus:
        if not raw:
            return cls.EMPTY
        try:
            return cls(str(raw))
        except ValueError:
            return cls.EMPTY

    def next(self) -> DayStatus:
        if self is DayStatus.EMPTY:
            return DayStatus.IN_PROGRESS
        if self is DayStatus.IN_PROGRESS:
            return DayStatus.COMPLETED
        return DayStatus.EMPTY


def _stored_icon(raw: Any) -> str:
    icon = strip_icon_prefix(str(raw or ""))
    return icon if icon in ICON_OPTIONS else DEFAULT_ICON


@dataclass(slots=True)
class Task:
    id: str
    name: str
    icon: str
    created_at: str  # YYYY-MM-DD

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "icon": self.icon,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Task:
        return cls(
            id=str(raw.get("id") or ""),
            name=str(raw.get("name") or ""),
            icon=_stored_icon(raw.get("icon")),
            created_at=str(raw.get("createdAt") or ""),
        )


@dataclass(slots=True)
class AppState:
    """
    The synchronized unit: ordered tasks, per-task date statuses, last mutation time.

    Notes:
    - task order is the user's display order and is significant.
    - task_states may hold orphaned ids; they are kept, never rendered.
    - last_modified is epoch millis and the only timestamp used by merges.
    """

    tasks: list[Task] = field(default_factory=list)
    task_states: dict[str, dict[str, DayStatus]] = field(default_factory=dict)
    last_modified: int = 0

    @classmethod
    def empty(cls, now: int | None = None) -> AppState:
        return cls(tasks=[], task_states={}, last_modified=now_ms() if now is None else int(now))

    def task_ids(self) -> list[str]:
        return [t.id for t in self.tasks]

    def find_task(self, task_id: str) -> Task | None:
        for t in self.tasks:
            if t.id == task_id:
                return t
        return None

    def copy(self) -> AppState:
        return copy.deepcopy(self)

    def to_dict(self) -> dict[str, Any]:
        return {
            "tasks": [t.to_dict() for t in self.tasks],
            "taskStates": {
                task_id: {day: str(status) for day, status in days.items()}
                for task_id, days in self.task_states.items()
            },
            "lastModified": int(self.last_modified),
        }

    @classmethod
    def from_dict(cls, raw: Any) -> AppState:
        if not isinstance(raw, dict) or not isinstance(raw.get("tasks"), list):
            raise ValueError("AppState document must be an object with a 'tasks' list")

        tasks = [Task.from_dict(t) for t in raw["tasks"] if isinstance(t, dict)]

        states: dict[str, dict[str, DayStatus]] = {}
        raw_states = raw.get("taskStates")
        if isinstance(raw_states, dict):
            for task_id, days in raw_states.items():
                if not isinstance(days, dict):
                    continue
                states[str(task_id)] = {
                    str(day): DayStatus.from_raw(status) for day, status in days.items()
                }

        return cls(
            tasks=tasks,
            task_states=states,
            last_modified=parse_timestamp_ms(raw.get("lastModified")),
        )


@dataclass(frozen=True, slots=True)
class Account:
    """Identity supplied by the authentication collaborator."""

    id: str
    email: str = ""
    last_sign_in: int = 0  # epoch millis

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "email": self.email, "lastSignIn": self.last_sign_in}
