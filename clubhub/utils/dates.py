"""Date helpers shared by the task engine."""
from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterator, Optional


def as_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize aware datetimes to naive UTC; naive values are assumed UTC."""
    if value is None or value.tzinfo is None:
        return value
    return (value - value.utcoffset()).replace(tzinfo=None)


def parse_datetime(value) -> Optional[datetime]:
    """Read a datetime stored inside a JSON column."""
    if value is None or isinstance(value, datetime):
        return as_naive_utc(value)
    return as_naive_utc(datetime.fromisoformat(str(value)))


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every calendar day from start to end inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)
