"""
Unit tests for sync and lookup windows.
"""

from datetime import datetime
from datetime import timedelta
from datetime import timezone

from calsync1on1.dates import lookup_window
from calsync1on1.dates import sync_window
from calsync1on1.dates import week_start
from tests.conftest import NOW


def test_week_starts_on_monday_midnight():
    start = week_start(NOW)

    assert start == datetime(2026, 3, 2, tzinfo=timezone.utc)
    assert start.weekday() == 0


def test_monday_is_its_own_week_start():
    monday_noon = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)
    assert week_start(monday_noon) == datetime(2026, 3, 2, tzinfo=timezone.utc)


def test_sunday_belongs_to_previous_monday():
    sunday = datetime(2026, 3, 8, 23, 0, tzinfo=timezone.utc)
    assert week_start(sunday) == datetime(2026, 3, 2, tzinfo=timezone.utc)


def test_sync_window_spans_whole_weeks():
    start, end = sync_window(NOW, weeks=2)

    assert start == datetime(2026, 3, 2, tzinfo=timezone.utc)
    assert end - start == timedelta(weeks=2)


def test_start_offset_shifts_window():
    start, _ = sync_window(NOW, weeks=1, start_offset=1)
    assert start == datetime(2026, 3, 9, tzinfo=timezone.utc)

    start, _ = sync_window(NOW, weeks=1, start_offset=-1)
    assert start == datetime(2026, 2, 23, tzinfo=timezone.utc)


def test_lookup_window_defaults_to_week_back_month_ahead():
    start, end = lookup_window(NOW)

    assert start == NOW - timedelta(weeks=1)
    assert end == datetime(2026, 4, 4, 12, 0, tzinfo=timezone.utc)


def test_lookup_window_month_arithmetic_clamps_day():
    jan31 = datetime(2026, 1, 31, 9, 0, tzinfo=timezone.utc)

    _, end = lookup_window(jan31)

    assert end == datetime(2026, 2, 28, 9, 0, tzinfo=timezone.utc)


def test_naive_now_is_treated_as_local_time():
    start, end = sync_window(datetime(2026, 3, 4, 12, 0))

    assert start.tzinfo is not None
    assert start.weekday() == 0
    assert (start.hour, start.minute) == (0, 0)
