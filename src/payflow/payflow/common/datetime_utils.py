from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Iterator, Optional


def parse_hhmm(value: str | None) -> Optional[time]:
    """Parse an ``HH:MM`` edit field; blank means "no value"."""
    v = (value or "").strip()
    if not v:
        return None
    return datetime.strptime(v, "%H:%M").time()


def minute_of_day(value: datetime | time) -> int:
    return value.hour * 60 + value.minute


def at_time(day: date | datetime, t: time) -> datetime:
    if isinstance(day, datetime):
        day = day.date()
    return datetime.combine(day, t)


def end_of_day(day: date) -> datetime:
    return datetime.combine(day, time.max)


def iter_days(start: date, end: date) -> Iterator[date]:
    cur = start
    while cur <= end:
        yield cur
        cur += timedelta(days=1)


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()
