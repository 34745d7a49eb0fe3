from __future__ import annotations

from datetime import date, datetime, timedelta

from attendance_engine.core.enums import ReportPeriod
from attendance_engine.reports.window import resolve_window

TODAY = date(2025, 3, 20)


def window(**kwargs):
    params = dict(period=None, start_date=None, end_date=None, hire_date=None, today=TODAY)
    params.update(kwargs)
    return resolve_window(**params)


def test_weekly_ends_seven_days_after_start():
    d = date(2025, 3, 3)
    w = window(period=ReportPeriod.WEEKLY, start_date=d)

    assert w.start_date == "2025-03-03"
    assert w.end_date == (d + timedelta(days=7)).isoformat()
    assert w.contains(datetime(2025, 3, 9, 23, 59))
    assert not w.contains(datetime(2025, 3, 10, 0, 0))


def test_monthly_snaps_to_calendar_month():
    w = window(period=ReportPeriod.MONTHLY, start_date=date(2025, 12, 17))

    assert (w.start_date, w.end_date) == ("2025-12-01", "2026-01-01")
    assert w.label == "monthly"


def test_explicit_range_is_inclusive_of_end_day():
    w = window(start_date=date(2025, 3, 1), end_date=date(2025, 3, 2))

    assert w.label == "custom"
    assert w.contains(datetime(2025, 3, 2, 23, 59, 59))
    assert not w.contains(datetime(2025, 3, 3, 0, 0))


def test_daily_with_start_only_covers_one_day():
    w = window(period=ReportPeriod.DAILY, start_date=date(2025, 3, 3))

    assert w.contains(datetime(2025, 3, 3, 17, 0))
    assert not w.contains(datetime(2025, 3, 4, 0, 0))


def test_default_window_runs_from_hire_date_to_today():
    w = window(hire_date=date(2024, 6, 1))

    assert (w.label, w.start_date, w.end_date) == ("all-time", "2024-06-01", "2025-03-20")
    assert w.contains(datetime(2025, 3, 20, 23, 0))


def test_default_window_without_hire_date_is_unbounded():
    w = window()

    assert not w.bounded
    assert w.contains(datetime(1999, 1, 1))
