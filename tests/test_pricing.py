from datetime import date, datetime

import pytest

from app.core.errors import PricingError
from app.models.booking import BookingType
from app.services.pricing_service import (
    WEEKDAY,
    WEEKEND,
    PricingInput,
    calculate_pricing,
    day_type,
    quote_pricing,
)


def _input(day, start, end, extra=0, kind=BookingType.EVENT):
    return PricingInput(day, start, end, extra, kind)


def test_friday_evening_is_priced_as_weekend():
    b = quote_pricing("2024-06-07", "18:00", "23:00")
    assert b.day_type == WEEKEND
    assert b.hourly_rate_cents == 17500
    assert b.event_hours == 5
    assert b.base_amount_cents == 87500
    assert b.extra_setup_cents == 0
    assert b.deposit_cents == 20000
    assert b.total_cents == 107500


def test_weekday_with_extra_setup():
    b = quote_pricing("2024-06-10", "10:00", "14:00", extra_setup_hours=2)
    assert b.day_type == WEEKDAY
    assert b.hourly_rate_cents == 15000
    assert b.base_amount_cents == 60000
    assert b.extra_setup_hours == 2
    assert b.extra_setup_cents == 20000
    assert b.total_cents == 100000


def test_single_weekday_hour_is_allowed():
    b = quote_pricing("2024-06-10", "10:00", "11:00")
    assert b.event_hours == 1
    assert b.total_cents == 15000 + 20000


@pytest.mark.parametrize("day,expected", [
    (date(2024, 6, 9), WEEKEND),   # Sunday
    (date(2024, 6, 10), WEEKDAY),  # Monday
    (date(2024, 6, 13), WEEKDAY),  # Thursday
    (date(2024, 6, 7), WEEKEND),   # Friday
    (date(2024, 6, 8), WEEKEND),   # Saturday
])
def test_day_type(day, expected):
    assert day_type(day) == expected


def test_weekend_minimum_hours():
    with pytest.raises(PricingError, match="at least 4 event hours"):
        quote_pricing("2024-06-08", "18:00", "21:00")


def test_midnight_end_counts_full_hours():
    b = quote_pricing("2024-06-07", "20:00", "24:00")
    assert b.event_hours == 4
    assert b.base_amount_cents == 70000


def test_end_must_follow_start():
    with pytest.raises(PricingError, match="end time must be after start time"):
        quote_pricing("2024-06-10", "14:00", "12:00")


def test_operating_hours():
    with pytest.raises(PricingError, match="operating hours"):
        quote_pricing("2024-06-10", "07:00", "12:00")


def test_partial_hours_rejected():
    with pytest.raises(PricingError, match="whole number of hours"):
        quote_pricing("2024-06-10", "10:00", "11:30")


def test_window_must_stay_on_event_day():
    data = _input(date(2024, 6, 10), datetime(2024, 6, 10, 22), datetime(2024, 6, 11, 1))
    with pytest.raises(PricingError, match="same day"):
        calculate_pricing(data)


def test_unparseable_parts_are_reported_in_order():
    with pytest.raises(PricingError, match="Invalid event date"):
        quote_pricing("2024-13-01", "bad", "bad")
    with pytest.raises(PricingError, match="Invalid event start time"):
        quote_pricing("2024-06-10", "25:00", "bad")
    with pytest.raises(PricingError, match="Invalid event end time"):
        quote_pricing("2024-06-10", "10:00", "bad")


def test_weekend_minimum_checked_before_setup_hours():
    with pytest.raises(PricingError, match="at least 4 event hours"):
        quote_pricing("2024-06-08", "18:00", "20:00", extra_setup_hours=-1)


def test_negative_setup_hours():
    with pytest.raises(PricingError, match="non-negative integer"):
        quote_pricing("2024-06-10", "10:00", "12:00", extra_setup_hours=-1)


def test_showing_is_free():
    b = quote_pricing("2024-06-13", "15:00", "16:00", booking_type=BookingType.SHOWING)
    assert b.total_cents == 0
    assert b.deposit_cents == 0
    assert b.hourly_rate_cents == 0


def test_showing_rejects_extra_setup():
    with pytest.raises(PricingError, match="not applicable for showings"):
        quote_pricing("2024-06-13", "15:00", "16:00", extra_setup_hours=1, booking_type=BookingType.SHOWING)
