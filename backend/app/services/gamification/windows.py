"""UTC time windows used to scope quest progress."""
from __future__ import annotations

from datetime import datetime, time, timedelta, timezone
from typing import Optional, Tuple

Window = Tuple[datetime, datetime]


def _as_utc(now: Optional[datetime]) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc)


def day_window(now: Optional[datetime] = None) -> Window:
    """Half-open [start, end) bounds of the current UTC day."""
    current = _as_utc(now)
    start = datetime.combine(current.date(), time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)


def week_window(now: Optional[datetime] = None) -> Window:
    """Half-open bounds of the current week, Monday 00:00 UTC onwards."""
    day_start, _ = day_window(now)
    start = day_start - timedelta(days=day_start.weekday())
    return start, start + timedelta(days=7)


def utc_now(now: Optional[datetime] = None) -> datetime:
    return _as_utc(now)
