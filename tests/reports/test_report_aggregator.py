from __future__ import annotations

from datetime import date, datetime

import pytest

from attendance_engine.attendance.document_session_store import DocumentSessionStore
from attendance_engine.attendance.model import AttendanceRecord
from attendance_engine.core.constants import EMPLOYEES
from attendance_engine.core.enums import AttendanceMethod, ReportPeriod
from attendance_engine.core.exceptions import NotFoundError, StoreError
from attendance_engine.employees.document_directory import DocumentEmployeeDirectory
from attendance_engine.geofence.model import GeoPoint
from attendance_engine.reports.service import ReportAggregator, tally
from attendance_engine.store.memory_store import InMemoryDocumentStore

OFFICE = GeoPoint(longitude=8.8362755, latitude=33.1245286)


def add_session(store, employee_id, entry, exit_=None):
    sessions = DocumentSessionStore(store)
    record = sessions.create(employee_id=employee_id, entry_time=entry, method=AttendanceMethod.MANUAL, location=OFFICE)
    if exit_:
        sessions.record_exit(record.record_id, exit_time=exit_, location=OFFICE)


def record(entry, exit_=None):
    return AttendanceRecord(
        record_id="r", employee_id="E1", entry_time=entry, method=AttendanceMethod.MANUAL, exit_time=exit_
    )


def test_open_session_counts_a_day_but_no_hours():
    assert tally([record(datetime(2025, 3, 3, 8, 0))], late_hour=9) == (1, 0.0, 0)


def test_closed_session_counts_exact_hours():
    days, hours, late = tally(
        [record(datetime(2025, 3, 3, 9, 0), datetime(2025, 3, 3, 17, 0))], late_hour=9
    )

    assert (days, hours, late) == (1, 8.0, 1)


def test_records_without_entry_are_ignored():
    assert tally([record(None)], late_hour=9) == (0, 0.0, 0)


def test_day_report_after_entry_and_exit(store, aggregator):
    add_session(store, "E1", datetime(2025, 3, 3, 9, 0), datetime(2025, 3, 3, 17, 0))

    report = aggregator.presence_report("E1", period=ReportPeriod.DAILY, start_date=date(2025, 3, 3))

    assert (report.total_days, report.total_hours, report.late_days) == (1, 8.0, 1)
    assert report.to_dict()["employeeName"] == "Employee One"


def test_build_report_over_explicit_window(store, aggregator):
    add_session(store, "E1", datetime(2025, 3, 3, 8, 0), datetime(2025, 3, 3, 16, 30))
    add_session(store, "E1", datetime(2025, 3, 4, 9, 30))
    add_session(store, "E1", datetime(2025, 3, 12, 8, 0), datetime(2025, 3, 12, 12, 0))

    report = aggregator.build_report("E1", datetime(2025, 3, 1), datetime(2025, 3, 7, 23, 59, 59))

    assert report.total_days == 2
    assert report.total_hours == pytest.approx(8.5)
    assert report.late_days == 1
    assert report.period == "custom"


def test_weekly_report_end_date_is_start_plus_seven(store, aggregator):
    add_session(store, "E1", datetime(2025, 3, 9, 23, 0))
    add_session(store, "E1", datetime(2025, 3, 10, 8, 0))

    report = aggregator.presence_report("E1", period=ReportPeriod.WEEKLY, start_date=date(2025, 3, 3))

    assert report.start_date == "2025-03-03"
    assert report.end_date == "2025-03-10"
    assert report.total_days == 1


def test_monthly_report_covers_whole_month(store, aggregator):
    add_session(store, "E1", datetime(2025, 3, 1, 8, 0))
    add_session(store, "E1", datetime(2025, 3, 31, 10, 0))
    add_session(store, "E1", datetime(2025, 4, 1, 8, 0))

    report = aggregator.presence_report("E1", period=ReportPeriod.MONTHLY, start_date=date(2025, 3, 15))

    assert (report.start_date, report.end_date) == ("2025-03-01", "2025-04-01")
    assert (report.total_days, report.late_days) == (2, 1)


def test_default_report_spans_hire_date_to_today(store, aggregator):
    store.put(EMPLOYEES, "E3", {"email": "e3@example.com", "name": "Three", "role": "employee", "hireDate": datetime(2025, 1, 15)})
    add_session(store, "E3", datetime(2025, 1, 10, 8, 0))
    add_session(store, "E3", datetime(2025, 2, 1, 8, 0))

    report = aggregator.presence_report("E3")

    assert (report.period, report.start_date, report.end_date) == ("all-time", "2025-01-15", "2025-03-03")
    assert report.total_days == 1


def test_report_for_unknown_employee(aggregator):
    with pytest.raises(NotFoundError):
        aggregator.presence_report("NOPE")


def test_reports_work_without_composite_index(clock):
    store = InMemoryDocumentStore(clock=clock)
    store.put(EMPLOYEES, "E1", {"email": "e1@example.com", "name": "One"})
    add_session(store, "E1", datetime(2025, 3, 3, 9, 0), datetime(2025, 3, 3, 17, 0))
    add_session(store, "E1", datetime(2025, 2, 3, 9, 0), datetime(2025, 2, 3, 17, 0))
    aggregator = ReportAggregator(DocumentSessionStore(store), DocumentEmployeeDirectory(store), clock=clock)

    report = aggregator.presence_report("E1", period=ReportPeriod.WEEKLY, start_date=date(2025, 3, 3))

    assert (report.total_days, report.total_hours) == (1, 8.0)


def test_all_reports_skip_only_the_failing_employee(store, clock):
    add_session(store, "E1", datetime(2025, 3, 3, 8, 0), datetime(2025, 3, 3, 12, 0))
    add_session(store, "E2", datetime(2025, 3, 3, 8, 0), datetime(2025, 3, 3, 12, 0))

    class FlakySessions(DocumentSessionStore):
        def records_in_window(self, employee_id, *, start, end):
            if employee_id == "E2":
                raise StoreError("shard unavailable")
            return super().records_in_window(employee_id, start=start, end=end)

    aggregator = ReportAggregator(FlakySessions(store), DocumentEmployeeDirectory(store), clock=clock)

    reports = aggregator.build_all_reports(period=ReportPeriod.DAILY, start_date=date(2025, 3, 3))

    assert sorted(r.employee_id for r in reports) == ["ADM", "E1"]
    e1 = next(r for r in reports if r.employee_id == "E1")
    assert e1.total_hours == 4.0


def test_daily_stats_counts_distinct_employees(store, aggregator, clock):
    add_session(store, "E1", datetime(2025, 3, 1, 8, 0), datetime(2025, 3, 1, 9, 0))
    add_session(store, "E1", datetime(2025, 3, 1, 10, 0))
    add_session(store, "E2", datetime(2025, 3, 1, 8, 30))
    add_session(store, "E2", datetime(2025, 3, 3, 7, 30))
    add_session(store, "E1", datetime(2025, 2, 20, 8, 0))

    stats = aggregator.daily_stats(3)

    assert [s.to_dict() for s in stats] == [
        {"date": "2025-03-01", "count": 2},
        {"date": "2025-03-02", "count": 0},
        {"date": "2025-03-03", "count": 1},
    ]


def test_daily_stats_days_are_clamped(aggregator):
    assert len(aggregator.daily_stats()) == 7
    assert len(aggregator.daily_stats(90)) == 30


def test_total_count(store, aggregator):
    add_session(store, "E1", datetime(2025, 3, 1, 8, 0))
    add_session(store, "E2", datetime(2025, 3, 1, 8, 0))

    assert aggregator.total_count() == 2
