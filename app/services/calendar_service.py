"""Local wall-clock date/time helpers.

Dates travel as ``YYYY-MM-DD`` and times of day as ``HH:MM``. Everything is
naive local time; nothing here converts through UTC.
"""
from datetime import date, datetime, time, timedelta

from app.core.errors import ValidationError


def parse_calendar_date(value: str, message: str = "Invalid date. Use YYYY-MM-DD.") -> date:
    try:
        return date.fromisoformat((value or "").strip())
    except (TypeError, ValueError):
        raise ValidationError(message)


def parse_clock_time(value: str, allow_midnight_end: bool = False, message: str = "Invalid time. Use HH:MM.") -> tuple[int, int]:
    """Return (hour, minute). ``24:00`` is accepted only as an end-of-day marker."""
    try:
        hh, mm = (value or "").strip().split(":")
        hour, minute = int(hh), int(mm)
    except (AttributeError, TypeError, ValueError):
        raise ValidationError(message)
    if allow_midnight_end and hour == 24 and minute == 0:
        return hour, minute
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ValidationError(message)
    return hour, minute


def combine_local(day: date, hour: int, minute: int) -> datetime:
    # 24:00 rolls to midnight of the following day
    if hour == 24:
        return datetime.combine(day + timedelta(days=1), time(0, minute))
    return datetime.combine(day, time(hour, minute))


def to_local_datetime(day: date, hhmm: str, allow_midnight_end: bool = False) -> datetime:
    hour, minute = parse_clock_time(hhmm, allow_midnight_end=allow_midnight_end)
    return combine_local(day, hour, minute)


def day_of_week(day: date) -> int:
    """Sunday-first day index: 0=Sunday .. 6=Saturday."""
    return (day.weekday() + 1) % 7


def format_hhmm(value: datetime | time) -> str:
    return f"{value.hour:02d}:{value.minute:02d}"


def minutes_of(hhmm: str) -> int:
    hour, minute = parse_clock_time(hhmm, allow_midnight_end=True)
    return hour * 60 + minute


def hhmm_from_minutes(total: int) -> str:
    hh, mm = divmod(total, 60)
    return f"{hh:02d}:{mm:02d}"
