from datetime import date, datetime

import pytest

from app.core.errors import ValidationError
from app.services.availability_service import generate_time_slots
from app.services.calendar_service import (
    day_of_week,
    parse_calendar_date,
    parse_clock_time,
    to_local_datetime,
)


def test_thirty_minute_slots():
    assert generate_time_slots("09:00", "12:00", 30) == ["09:00", "09:30", "10:00", "10:30", "11:00", "11:30"]


def test_last_slot_must_fit_inside_window():
    assert generate_time_slots("15:00", "18:00", 45) == ["15:00", "15:45", "16:30", "17:15"]
    assert generate_time_slots("15:00", "16:00", 40) == ["15:00"]


def test_zero_duration_yields_nothing():
    assert generate_time_slots("09:00", "12:00", 0) == []


def test_day_of_week_is_sunday_first():
    assert day_of_week(date(2024, 6, 9)) == 0
    assert day_of_week(date(2024, 6, 13)) == 4
    assert day_of_week(date(2024, 6, 15)) == 6


def test_midnight_only_as_end_marker():
    assert parse_clock_time("24:00", allow_midnight_end=True) == (24, 0)
    with pytest.raises(ValidationError):
        parse_clock_time("24:00")
    with pytest.raises(ValidationError):
        parse_clock_time("24:30", allow_midnight_end=True)


def test_midnight_end_rolls_to_next_day():
    assert to_local_datetime(date(2024, 6, 7), "24:00", allow_midnight_end=True) == datetime(2024, 6, 8, 0, 0)


@pytest.mark.parametrize("value", ["", "2024-02-30", "06/07/2024", None])
def test_bad_calendar_dates(value):
    with pytest.raises(ValidationError):
        parse_calendar_date(value)
