from __future__ import annotations

import calendar
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_aware(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes (e.g. from SQLite) as UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def add_months(value: datetime, months: int) -> datetime:
    """Calendar month arithmetic; the day is clamped to the target month's length."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def month_bounds(year: int, month: int) -> Tuple[datetime, datetime]:
    """First instant and last instant (23:59:59.999999) of a month in UTC."""
    start = datetime(year, month, 1, tzinfo=timezone.utc)
    last_day = calendar.monthrange(year, month)[1]
    end = datetime(year, month, last_day, 23, 59, 59, 999999, tzinfo=timezone.utc)
    return start, end


def whole_days_between(start: datetime, end: datetime) -> int:
    """Number of complete days from start to end (negative when end < start)."""
    delta: timedelta = ensure_aware(end) - ensure_aware(start)
    return int(delta.total_seconds() // 86400)


def whole_minutes_between(start: datetime, end: datetime) -> int:
    delta: timedelta = ensure_aware(end) - ensure_aware(start)
    return int(delta.total_seconds() // 60)
