"""
Venue pricing.

``calculate_pricing`` is pure: given a calendar date, a start/end wall-clock
window, extra setup hours and the booking type it returns a breakdown in
integer cents or raises ``PricingError``. Checks run in a fixed order so the
first failing rule decides the message.
"""
from dataclasses import dataclass, asdict
from datetime import date, datetime, timedelta

from app.core.config import settings
from app.core.errors import PricingError, ValidationError
from app.models.booking import BookingType
from app.services.calendar_service import day_of_week, parse_calendar_date, to_local_datetime

WEEKDAY = "weekday"
WEEKEND = "weekend"

# Sunday-first indexes; Friday is priced as weekend
WEEKDAY_INDEXES = {1, 2, 3, 4}


@dataclass(frozen=True)
class PricingInput:
    event_date: date | None
    start_time: datetime | None
    end_time: datetime | None
    extra_setup_hours: int
    booking_type: BookingType


@dataclass(frozen=True)
class PricingBreakdown:
    day_type: str
    hourly_rate_cents: int
    event_hours: int
    base_amount_cents: int
    extra_setup_hours: int
    extra_setup_cents: int
    deposit_cents: int
    total_cents: int

    def as_dict(self) -> dict:
        return asdict(self)


def day_type(day: date) -> str:
    return WEEKDAY if day_of_week(day) in WEEKDAY_INDEXES else WEEKEND


def calculate_pricing(data: PricingInput) -> PricingBreakdown:
    if not isinstance(data.event_date, date) or isinstance(data.event_date, datetime):
        raise PricingError("Invalid event date.")
    if not isinstance(data.start_time, datetime):
        raise PricingError("Invalid event start time.")
    if not isinstance(data.end_time, datetime):
        raise PricingError("Invalid event end time.")

    event_date, start, end = data.event_date, data.start_time, data.end_time

    if end <= start:
        raise PricingError("Event end time must be after start time.")

    same_day = start.date() == event_date and end.date() == event_date
    midnight_end = end.date() == event_date + timedelta(days=1) and end.time() == datetime.min.time()
    if not same_day and not midnight_end:
        raise PricingError("Event date, start time, and end time must be on the same day.")

    end_hour = 24 if midnight_end else end.hour
    if start.hour < settings.OPEN_HOUR or end_hour > settings.CLOSE_HOUR:
        raise PricingError(
            f"Event time must be within operating hours ({settings.OPEN_HOUR}:00–{settings.CLOSE_HOUR}:00)."
        )

    seconds = (end - start).total_seconds()
    if seconds <= 0 or seconds % 3600 != 0:
        raise PricingError("Event duration must be a positive whole number of hours.")
    hours = int(seconds // 3600)

    kind = day_type(event_date)

    if data.booking_type == BookingType.SHOWING:
        if data.extra_setup_hours != 0:
            raise PricingError("Extra setup hours are not applicable for showings.")
        return PricingBreakdown(
            day_type=kind,
            hourly_rate_cents=0,
            event_hours=hours,
            base_amount_cents=0,
            extra_setup_hours=0,
            extra_setup_cents=0,
            deposit_cents=0,
            total_cents=0,
        )

    rate = settings.WEEKDAY_RATE if kind == WEEKDAY else settings.WEEKEND_RATE
    hourly_rate_cents = rate * 100

    if kind == WEEKEND and hours < settings.WEEKEND_MINIMUM_HOURS:
        raise PricingError(f"Weekend bookings require at least {settings.WEEKEND_MINIMUM_HOURS} event hours.")

    extra = data.extra_setup_hours
    if isinstance(extra, bool) or not isinstance(extra, int) or extra < 0:
        raise PricingError("Extra setup hours must be a non-negative integer.")

    base_amount_cents = hours * hourly_rate_cents
    extra_setup_cents = extra * settings.EXTRA_SETUP_HOURLY * 100
    deposit_cents = settings.SECURITY_DEPOSIT * 100
    return PricingBreakdown(
        day_type=kind,
        hourly_rate_cents=hourly_rate_cents,
        event_hours=hours,
        base_amount_cents=base_amount_cents,
        extra_setup_hours=extra,
        extra_setup_cents=extra_setup_cents,
        deposit_cents=deposit_cents,
        total_cents=base_amount_cents + extra_setup_cents + deposit_cents,
    )


def build_pricing_input(event_date: str, start_time: str, end_time: str,
                        extra_setup_hours: int, booking_type: BookingType) -> PricingInput:
    """Parse boundary strings; unparseable parts become None so the calculator reports them in order."""
    try:
        day = parse_calendar_date(event_date)
    except ValidationError:
        return PricingInput(None, None, None, extra_setup_hours, booking_type)
    try:
        start = to_local_datetime(day, start_time)
    except ValidationError:
        start = None
    try:
        end = to_local_datetime(day, end_time, allow_midnight_end=True)
    except ValidationError:
        end = None
    return PricingInput(day, start, end, extra_setup_hours, booking_type)


def quote_pricing(event_date: str, start_time: str, end_time: str,
                  extra_setup_hours: int = 0, booking_type: BookingType = BookingType.EVENT) -> PricingBreakdown:
    return calculate_pricing(build_pricing_input(event_date, start_time, end_time, extra_setup_hours, booking_type))


def apply_pricing(booking, breakdown: PricingBreakdown) -> None:
    booking.day_type = breakdown.day_type
    booking.hourly_rate_cents = breakdown.hourly_rate_cents
    booking.event_hours = breakdown.event_hours
    booking.base_amount_cents = breakdown.base_amount_cents
    booking.extra_setup_hours = breakdown.extra_setup_hours
    booking.extra_setup_cents = breakdown.extra_setup_cents
    booking.deposit_cents = breakdown.deposit_cents
    booking.total_cents = breakdown.total_cents
