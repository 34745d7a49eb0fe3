from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Callable, Iterable, Optional

from ..attendance.model import AttendanceRecord
from ..attendance.repository import SessionStore
from ..common.datetime_utils import hours_between, now_local, start_of_day
from ..core.constants import DEFAULT_DAILY_STATS_DAYS, DEFAULT_DAILY_STATS_MAX_DAYS, DEFAULT_LATE_HOUR
from ..core.enums import ReportPeriod
from ..core.exceptions import NotFoundError, StoreError
from ..employees.model import Employee
from ..employees.repository import EmployeeDirectory
from .model import DailyStat, PresenceReport
from .window import CUSTOM, ReportWindow, resolve_window

logger = logging.getLogger(__name__)


def tally(records: Iterable[AttendanceRecord], *, late_hour: int) -> tuple[int, float, int]:
    """(totalDays, totalHours, lateDays) over records.

    Every record with an entry time counts as a day. Hours are added only
    when the exit is recorded too; an open session contributes nothing.
    """
    total_days = 0
    total_hours = 0.0
    late_days = 0
    for r in records:
        if r.entry_time is None:
            continue
        total_days += 1
        if r.entry_time.hour >= late_hour:
            late_days += 1
        if r.exit_time is not None:
            total_hours += hours_between(r.entry_time, r.exit_time)
    return total_days, total_hours, late_days


class ReportAggregator:
    def __init__(
        self,
        sessions: SessionStore,
        employees: EmployeeDirectory,
        *,
        late_hour: int = DEFAULT_LATE_HOUR,
        daily_stats_max_days: int = DEFAULT_DAILY_STATS_MAX_DAYS,
        clock: Callable[[], datetime] = now_local,
    ):
        self._sessions = sessions
        self._employees = employees
        self._late_hour = int(late_hour)
        self._daily_stats_max_days = int(daily_stats_max_days)
        self._clock = clock

    def _records(self, employee_id: str, window: ReportWindow) -> list[AttendanceRecord]:
        if not window.bounded:
            return list(self._sessions.all_for_employee(employee_id))
        records = self._sessions.records_in_window(employee_id, start=window.start, end=window.query_end)
        return [r for r in records if r.entry_time is not None and window.contains(r.entry_time)]

    def _report(self, employee: Employee, window: ReportWindow) -> PresenceReport:
        total_days, total_hours, late_days = tally(
            self._records(employee.employee_id, window), late_hour=self._late_hour
        )
        return PresenceReport(
            employee_id=employee.employee_id,
            employee_name=employee.name,
            employee_role=employee.role.value if employee.role else None,
            period=window.label,
            start_date=window.start_date,
            end_date=window.end_date,
            total_days=total_days,
            total_hours=total_hours,
            late_days=late_days,
        )

    def _window_for(
        self,
        employee: Employee,
        *,
        period: Optional[ReportPeriod],
        start_date: Optional[date],
        end_date: Optional[date],
    ) -> ReportWindow:
        hired = employee.hire_date or employee.created_at
        return resolve_window(
            period=period,
            start_date=start_date,
            end_date=end_date,
            hire_date=hired.date() if hired else None,
            today=self._clock().date(),
        )

    def _employee(self, employee_id: str) -> Employee:
        employee = self._employees.get_by_id(employee_id)
        if not employee:
            logger.warning("Employee not found for report employee=%s", employee_id)
            raise NotFoundError("Employee not found")
        return employee

    def build_report(self, employee_id: str, window_start: datetime, window_end: datetime) -> PresenceReport:
        """Report over the inclusive window [window_start, window_end]."""
        employee = self._employee(employee_id)
        window = ReportWindow(start=window_start, end=window_end, end_exclusive=False, label=CUSTOM)
        return self._report(employee, window)

    def presence_report(
        self,
        employee_id: str,
        *,
        period: Optional[ReportPeriod] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> PresenceReport:
        employee = self._employee(employee_id)
        window = self._window_for(employee, period=period, start_date=start_date, end_date=end_date)
        report = self._report(employee, window)
        logger.info(
            "Presence report generated employee=%s period=%s start=%s end=%s",
            employee_id,
            report.period,
            report.start_date,
            report.end_date,
        )
        return report

    def build_all_reports(
        self,
        *,
        period: Optional[ReportPeriod] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[PresenceReport]:
        reports: list[PresenceReport] = []
        for employee in self._employees.list_all():
            window = self._window_for(employee, period=period, start_date=start_date, end_date=end_date)
            try:
                reports.append(self._report(employee, window))
            except StoreError:
                logger.error(
                    "Could not read attendance for report, skipping employee=%s",
                    employee.employee_id,
                    exc_info=True,
                )
        logger.info("All presence reports generated count=%d", len(reports))
        return reports

    def daily_stats(self, days: Optional[int] = None) -> list[DailyStat]:
        """Distinct employees with an entry, per day, for the last `days` days."""
        days = days or DEFAULT_DAILY_STATS_DAYS
        days = max(1, min(int(days), self._daily_stats_max_days))

        first_day = self._clock().date() - timedelta(days=days - 1)
        per_day: dict[date, set[str]] = {first_day + timedelta(days=i): set() for i in range(days)}
        for r in self._sessions.entries_since(start_of_day(first_day)):
            if r.entry_time is None:
                continue
            bucket = per_day.get(r.entry_time.date())
            if bucket is not None:
                bucket.add(r.employee_id)

        return [DailyStat(day=d.isoformat(), count=len(ids)) for d, ids in sorted(per_day.items())]

    def total_count(self) -> int:
        return self._sessions.count()
