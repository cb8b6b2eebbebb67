import time
from datetime import datetime, timedelta, timezone

import pytest

from certwatch.services.time_utils import format_duration, format_period

START = datetime(2025, 1, 1, 0, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def utc_local_zone(monkeypatch):
    """Run with UTC as the local zone so calendar arithmetic is deterministic."""
    monkeypatch.setenv("TZ", "UTC")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()


def test_none_inputs():
    assert format_period(None, START) is None
    assert format_period(START, None) is None
    assert format_duration(None) is None


def test_end_before_start():
    assert format_period(START + timedelta(days=1), START) is None


def test_short_format():
    end = datetime(2026, 3, 4, 4, 5, tzinfo=timezone.utc)
    assert format_period(START, end) == "1y, 2mo, 3d, 4h, 5m"


def test_long_format():
    end = datetime(2026, 3, 4, 4, 5, tzinfo=timezone.utc)
    assert format_period(START, end, long_format=True) == "1 year, 2 months, 3 days, 4 hours, 5 minutes"


def test_singular_units():
    end = datetime(2026, 2, 2, 1, 1, tzinfo=timezone.utc)
    assert format_period(START, end, long_format=True) == "1 year, 1 month, 1 day, 1 hour, 1 minute"


def test_zero_units_are_skipped():
    assert format_period(START, START + timedelta(days=2, minutes=7)) == "2d, 7m"
    assert format_period(START, START + timedelta(hours=3)) == "3h"


def test_minutes_shown_when_nothing_else():
    assert format_period(START, START) == "0m"
    assert format_period(START, START + timedelta(seconds=30), long_format=True) == "0 minutes"


def test_time_of_day_earlier_than_start():
    start = datetime(2025, 1, 1, 10, 0, tzinfo=timezone.utc)
    end = datetime(2025, 1, 2, 9, 0, tzinfo=timezone.utc)
    assert format_period(start, end) == "23h"


def test_month_end_clamping():
    start = datetime(2025, 1, 31, tzinfo=timezone.utc)
    end = datetime(2025, 3, 1, tzinfo=timezone.utc)
    assert format_period(start, end) == "1mo, 1d"


def test_format_duration():
    assert format_duration(timedelta(minutes=2)) == "2m"
    assert format_duration(timedelta(hours=1, minutes=30), long_format=True) == "1 hour, 30 minutes"
