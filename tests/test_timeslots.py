"""Tests for calendar-day and time-of-day parsing."""

from datetime import date, datetime, time

import pytest

from clinic_booking.core.timeslots import (
    format_time_of_day,
    parse_calendar_date,
    parse_time_of_day,
)


def test_parse_time_of_day_zero_padded():
    """Test zero-padded HH:MM strings parse to time values."""
    assert parse_time_of_day("09:00") == time(9, 0)
    assert parse_time_of_day("23:59") == time(23, 59)
    assert parse_time_of_day(time(10, 30, 15)) == time(10, 30)


@pytest.mark.parametrize("raw", ["9:00", "24:00", "10:60", "10-30", "", "noon", "10:30:00"])
def test_parse_time_of_day_rejects_malformed(raw):
    """Test unpadded and out-of-range values are refused."""
    with pytest.raises(ValueError):
        parse_time_of_day(raw)


def test_structured_comparison_avoids_lexical_pitfalls():
    """Test ordering follows the clock, not string order."""
    assert parse_time_of_day("09:30") < parse_time_of_day("10:00")
    assert format_time_of_day(time(9, 5)) == "09:05"


def test_parse_calendar_date_variants():
    """Test dates, timestamps and ISO strings reduce to the same day."""
    expected = date(2024, 6, 1)
    assert parse_calendar_date("2024-06-01") == expected
    assert parse_calendar_date("2024-06-01T00:00:00Z") == expected
    assert parse_calendar_date(datetime(2024, 6, 1, 18, 45)) == expected
    assert parse_calendar_date(expected) == expected


@pytest.mark.parametrize("raw", ["", "not-a-date", "2024-13-01", None])
def test_parse_calendar_date_rejects_garbage(raw):
    """Test unparseable dates raise ValueError."""
    with pytest.raises(ValueError):
        parse_calendar_date(raw)
