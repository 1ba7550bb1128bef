# src/habit_sync/core/transfer.py

from __future__ import annotations

import json
from datetime import date
from typing import Any

from ..errors import ValidationError
from . import dates
from .models import Account, AppState, now_ms


def export_filename(day: date) -> str:
    return f"habit-tracker-{dates.format_date(day)}.json"


def build_export(state: AppState, account: Account | None, *, now: int | None = None) -> dict[str, Any]:
    """Full user-data document: the state plus account metadata (if signed in)."""
    return {
        "exportedAt": now_ms() if now is None else int(now),
        "account": account.to_dict() if account is not None else None,
        "data": state.to_dict(),
    }


def dump_export(doc: dict[str, Any]) -> str:
    return json.dumps(doc, ensure_ascii=False, indent=2)


def parse_import(text: str) -> AppState:
    """
    Accept an export document ({"data": {...}}) or a bare AppState document.
    Both 'tasks' and 'taskStates' must be present.
    """
    try:
        raw = json.loads(text)
    except (TypeError, ValueError) as e:
        raise ValidationError("Import file is not valid JSON") from e

    if isinstance(raw, dict) and isinstance(raw.get("data"), dict):
        raw = raw["data"]

    if not isinstance(raw, dict) or "tasks" not in raw or "taskStates" not in raw:
        raise ValidationError("Invalid import format: expected 'tasks' and 'taskStates'")

    try:
        return AppState.from_dict(raw)
    except ValueError as e:
        raise ValidationError(str(e)) from e
