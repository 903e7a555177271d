"""Naive-UTC time helpers shared by models and services."""
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterator, Optional


def utcnow() -> datetime:
    """Current time as a naive UTC datetime, matching what the columns store."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def end_of_day(day: date) -> datetime:
    return datetime.combine(day, time.max)


def date_range(start: date, end: date) -> Iterator[date]:
    """Yield each calendar day from ``start`` through ``end`` inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Convert an offset-aware datetime to naive UTC; naive values are taken as UTC already."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
