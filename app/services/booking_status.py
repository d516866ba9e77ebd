from app.core.errors import ConflictError, ValidationError
from app.models.booking import Booking, BookingType, EventStatus, ShowingStatus

TERMINAL = {
    BookingType.EVENT: {EventStatus.CANCELLED},
    BookingType.SHOWING: {ShowingStatus.COMPLETED, ShowingStatus.CANCELLED},
}


def parse_booking_type(raw: str) -> BookingType:
    try:
        return BookingType((raw or "").strip().upper())
    except ValueError:
        raise ValidationError("Invalid booking type.")


def parse_status(booking_type: BookingType, raw: str) -> EventStatus | ShowingStatus:
    """Parse a raw status string against the closed set for the booking type."""
    enum_cls = EventStatus if booking_type == BookingType.EVENT else ShowingStatus
    try:
        return enum_cls((raw or "").strip().upper())
    except ValueError:
        allowed = ", ".join(s.value for s in enum_cls)
        raise ValidationError(f"Invalid status for {booking_type.value} booking. Allowed: {allowed}.")


def current_status(booking: Booking) -> EventStatus | ShowingStatus:
    return parse_status(BookingType(booking.booking_type), booking.status)


def is_blocking_event(booking: Booking) -> bool:
    """Only a confirmed event holds its date."""
    return booking.booking_type == BookingType.EVENT.value and booking.status == EventStatus.CONFIRMED.value


def is_terminal(booking: Booking) -> bool:
    return current_status(booking) in TERMINAL[BookingType(booking.booking_type)]


def check_transition(booking: Booking, target: EventStatus | ShowingStatus) -> bool:
    """Return True if the transition changes state, False for a same-state no-op.

    Terminal states accept only themselves.
    """
    current = current_status(booking)
    if current == target:
        return False
    if current in TERMINAL[BookingType(booking.booking_type)]:
        raise ConflictError(f"Booking is {current.value.lower()} and cannot change to {target.value}.")
    return True
