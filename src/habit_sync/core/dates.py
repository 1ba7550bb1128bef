# src/habit_sync/core/dates.py

from __future__ import annotations

from datetime import date, datetime, timedelta

from ..errors import ValidationError


def today() -> date:
    return datetime.now().astimezone().date()


def format_date(d: date) -> str:
    return d.strftime("%Y-%m-%d")


def parse_date_key(raw: str) -> date:
    try:
        return datetime.strptime(raw.strip(), "%Y-%m-%d").date()
    except (AttributeError, ValueError) as e:
        raise ValidationError(f"Invalid date (expected YYYY-MM-DD): {raw!r}") from e


def to_date_key(d: date | str) -> str:
    """Normalize a date or date string to the canonical YYYY-MM-DD key."""
    if isinstance(d, date):
        return format_date(d)
    return format_date(parse_date_key(d))


def week_start(ref: date) -> date:
    """Monday of the week containing ref."""
    return ref - timedelta(days=ref.weekday())


def week_dates(ref: date, offset: int = 0) -> list[date]:
    start = week_start(ref) + timedelta(weeks=int(offset))
    return [start + timedelta(days=i) for i in range(7)]


def is_future_date(d: date, ref: date) -> bool:
    return d > ref
