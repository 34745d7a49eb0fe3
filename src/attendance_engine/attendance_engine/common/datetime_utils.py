from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Any, Optional


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD (or a full ISO-8601 instant) into date."""
    value = value.strip()
    if len(value) == 10:
        return datetime.strptime(value, "%Y-%m-%d").date()
    return parse_iso_datetime(value).date()


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO-8601 instant into a naive local datetime.

    Offset-aware values are converted to the server's local time, so every
    instant inside the engine is comparable and `.hour` is the local hour.
    """
    value = value.strip()
    if value.endswith("Z") or value.endswith("z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    return to_local_naive(parsed)


def to_local_naive(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def as_datetime(value: Any) -> Optional[datetime]:
    """Normalize stored instants across store implementations.

    Stores can hand back:
    - datetime.datetime
    - ISO-8601 string (JSON-backed stores)
    - epoch milliseconds
    """

    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return to_local_naive(value)
    if isinstance(value, str):
        return parse_iso_datetime(value)
    if isinstance(value, (int, float)):
        return from_epoch_millis(value)
    raise TypeError(f"Unsupported stored instant type: {type(value)!r}")


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def start_of_day(value: date) -> datetime:
    return datetime.combine(value, time.min)


def end_of_day(value: date) -> datetime:
    return datetime.combine(value, time.max)


def first_of_month(value: date) -> date:
    return value.replace(day=1)


def first_of_next_month(value: date) -> date:
    first = first_of_month(value)
    if first.month == 12:
        return first.replace(year=first.year + 1, month=1)
    return first.replace(month=first.month + 1)


def to_epoch_millis(value: datetime) -> int:
    return int(value.timestamp() * 1000)


def from_epoch_millis(value: float) -> datetime:
    return datetime.fromtimestamp(float(value) / 1000)


def hours_between(start: datetime, end: datetime) -> float:
    return (end - start) / timedelta(hours=1)
