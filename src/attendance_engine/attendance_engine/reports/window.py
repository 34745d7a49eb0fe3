from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

from ..common.datetime_utils import end_of_day, first_of_month, first_of_next_month, start_of_day
from ..core.enums import ReportPeriod

CUSTOM = "custom"
ALL_TIME = "all-time"


@dataclass(frozen=True)
class ReportWindow:
    """Time window a presence report covers.

    `start`/`end` are None only for an all-time window of an employee with no
    hire date, which then covers every record.
    """

    start: Optional[datetime]
    end: Optional[datetime]
    end_exclusive: bool
    label: str

    def contains(self, instant: datetime) -> bool:
        if self.start is not None and instant < self.start:
            return False
        if self.end is not None:
            if self.end_exclusive and instant >= self.end:
                return False
            if not self.end_exclusive and instant > self.end:
                return False
        return True

    @property
    def bounded(self) -> bool:
        return self.start is not None and self.end is not None

    @property
    def query_end(self) -> Optional[datetime]:
        """Inclusive upper bound for store range queries."""
        if self.end is None:
            return None
        return self.end - timedelta(microseconds=1) if self.end_exclusive else self.end

    @property
    def start_date(self) -> Optional[str]:
        return self.start.date().isoformat() if self.start else None

    @property
    def end_date(self) -> Optional[str]:
        return self.end.date().isoformat() if self.end else None


def resolve_window(
    *,
    period: Optional[ReportPeriod],
    start_date: Optional[date],
    end_date: Optional[date],
    hire_date: Optional[date],
    today: date,
) -> ReportWindow:
    """Turn report query parameters into a concrete window.

    weekly  -> [start, start + 7d)
    monthly -> [first of start's month, first of the next month)
    start + end -> [start 00:00, end 23:59:59.999999]
    daily with start only -> [start, start + 1d)
    nothing -> [hire date 00:00, end of today]
    """
    if start_date is None:
        if hire_date is None:
            return ReportWindow(start=None, end=None, end_exclusive=False, label=ALL_TIME)
        return ReportWindow(
            start=start_of_day(hire_date),
            end=end_of_day(today),
            end_exclusive=False,
            label=ALL_TIME,
        )

    if period == ReportPeriod.WEEKLY:
        start = start_of_day(start_date)
        return ReportWindow(start=start, end=start + timedelta(days=7), end_exclusive=True, label=period.value)

    if period == ReportPeriod.MONTHLY:
        return ReportWindow(
            start=start_of_day(first_of_month(start_date)),
            end=start_of_day(first_of_next_month(start_date)),
            end_exclusive=True,
            label=period.value,
        )

    if end_date is not None:
        return ReportWindow(
            start=start_of_day(start_date),
            end=end_of_day(end_date),
            end_exclusive=False,
            label=period.value if period else CUSTOM,
        )

    start = start_of_day(start_date)
    return ReportWindow(
        start=start,
        end=start + timedelta(days=1),
        end_exclusive=True,
        label=(period or ReportPeriod.DAILY).value,
    )
