"""
Date-level and slot-level availability.

A blocked date closes the day for every booking type. A confirmed event closes
the day for further events and for showings. Showings occupy single slots
generated from the weekly availability windows.
"""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from sqlalchemy.orm import Session

from app.core.errors import ConflictError, ValidationError
from app.models.blocked_date import BlockedDate
from app.models.booking import Booking, BookingType, EventStatus, ShowingStatus
from app.services.calendar_service import day_of_week, format_hhmm, hhmm_from_minutes, minutes_of
from app.services.showing_settings_service import ShowingSettings, get_showing_settings, list_windows

logger = logging.getLogger(__name__)

AVAILABLE = "available"
BOOKED = "booked"
BLOCKED = "blocked"

EVENT_ON_DATE_REASON = "This date has an event booking. Showings are not available on event dates."
FULLY_BOOKED = "Fully booked"


@dataclass
class DateAvailability:
    status: str
    reason: str | None = None


@dataclass
class ShowingSlot:
    time: str
    available: bool = True
    reason: str | None = None


@dataclass
class ShowingSlots:
    slots: list[ShowingSlot] = field(default_factory=list)
    blocked: bool = False
    reason: str | None = None


def generate_time_slots(start_time: str, end_time: str, duration_minutes: int) -> list[str]:
    """Slots of ``duration_minutes`` from the window start; the last one must end by the window end."""
    if duration_minutes <= 0:
        return []
    cur, end = minutes_of(start_time), minutes_of(end_time)
    slots = []
    while cur + duration_minutes <= end:
        slots.append(hhmm_from_minutes(cur))
        cur += duration_minutes
    return slots


def get_blocked_date(db: Session, day: date) -> BlockedDate | None:
    return db.query(BlockedDate).filter(BlockedDate.date == day).first()


def find_blocking_event(db: Session, day: date, exclude_id: str | None = None) -> Booking | None:
    q = db.query(Booking).filter(
        Booking.booking_type == BookingType.EVENT.value,
        Booking.event_date == day,
        Booking.status == EventStatus.CONFIRMED.value,
    )
    if exclude_id:
        q = q.filter(Booking.id != exclude_id)
    return q.first()


def resolve_date_availability(db: Session, day: date) -> DateAvailability:
    blocked = get_blocked_date(db, day)
    if blocked:
        return DateAvailability(status=BLOCKED, reason=blocked.reason)
    if find_blocking_event(db, day):
        return DateAvailability(status=BOOKED)
    return DateAvailability(status=AVAILABLE)


def _active_showings_on(db: Session, day: date, exclude_id: str | None = None) -> list[Booking]:
    q = db.query(Booking).filter(
        Booking.booking_type == BookingType.SHOWING.value,
        Booking.event_date == day,
        Booking.status != ShowingStatus.CANCELLED.value,
    )
    if exclude_id:
        q = q.filter(Booking.id != exclude_id)
    return q.all()


def list_showing_slots(db: Session, day: date, showing_settings: ShowingSettings | None = None) -> ShowingSlots:
    # a closed day is reported as blocked even when it has no windows
    blocked = get_blocked_date(db, day)
    if blocked:
        return ShowingSlots(blocked=True, reason=blocked.reason)
    if find_blocking_event(db, day):
        return ShowingSlots(blocked=True, reason=EVENT_ON_DATE_REASON)

    cfg = showing_settings or get_showing_settings(db)
    if not cfg:
        return ShowingSlots()

    windows = list_windows(db, day_of_week=day_of_week(day), enabled_only=True)
    if not windows:
        return ShowingSlots()

    times: list[str] = []
    for w in windows:
        times.extend(generate_time_slots(w.start_time, w.end_time, cfg.default_duration_minutes))

    cap = cfg.slot_cap
    if cap is None:
        return ShowingSlots(slots=[ShowingSlot(time=t) for t in times])

    counts: dict[str, int] = {}
    for b in _active_showings_on(db, day):
        key = format_hhmm(b.start_time)
        counts[key] = counts.get(key, 0) + 1
    slots = []
    for t in times:
        ok = counts.get(t, 0) < cap
        slots.append(ShowingSlot(time=t, available=ok, reason=None if ok else FULLY_BOOKED))
    return ShowingSlots(slots=slots)


def assert_date_not_blocked(db: Session, day: date) -> None:
    if get_blocked_date(db, day):
        raise ConflictError("This date is blocked and not available for bookings.")


def assert_event_date_open(db: Session, day: date, exclude_id: str | None = None) -> None:
    assert_date_not_blocked(db, day)
    if find_blocking_event(db, day, exclude_id=exclude_id):
        logger.info("Rejected event on %s: date already has a confirmed event", day.isoformat())
        raise ConflictError("This date already has a confirmed event booking.")


def assert_showing_slot_open(db: Session, day: date, start: datetime, duration_minutes: int,
                             exclude_id: str | None = None, require_window: bool = True) -> None:
    """Write-time guard for a showing starting at ``start`` on ``day``.

    Admin-created showings skip the window check (``require_window=False``).
    """
    assert_date_not_blocked(db, day)
    if find_blocking_event(db, day):
        raise ConflictError("Showings are not available on dates with a confirmed event.")

    if require_window:
        start_min = start.hour * 60 + start.minute
        end_min = start_min + duration_minutes
        window = None
        for w in list_windows(db, day_of_week=day_of_week(day), enabled_only=True):
            if minutes_of(w.start_time) <= start_min < minutes_of(w.end_time):
                window = w
                break
        if not window:
            raise ValidationError("Selected time is outside showing availability.")
        if end_min > minutes_of(window.end_time):
            raise ValidationError("Showing would end after the availability window closes.")

    for other in _active_showings_on(db, day, exclude_id=exclude_id):
        if other.start_time == start:
            logger.info("Rejected showing at %s: slot already taken", start.isoformat())
            raise ConflictError("This showing time is already booked.")


def showing_end(start: datetime, duration_minutes: int) -> datetime:
    return start + timedelta(minutes=duration_minutes)
