"""
Self-service access to a booking through its opaque management token.

Every gated mutation resolves the token again; nothing here trusts a booking
object handed in from an earlier lookup.
"""
import secrets
from datetime import datetime, time, timedelta, timezone

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import ConflictError, ExpiredError, NotFoundError
from app.models.booking import Booking, BookingType, EventStatus, ShowingStatus
from app.services.addon_service import replace_booking_addons
from app.services.booking_fields import check_contact, check_setup


def generate_management_token() -> str:
    return secrets.token_hex(32)


def token_expiry_for(booking: Booking) -> datetime:
    """End of the event day plus the grace period."""
    end_of_day = datetime.combine(booking.event_date, time(23, 59, 59), tzinfo=timezone.utc)
    return end_of_day + timedelta(days=settings.MANAGEMENT_TOKEN_GRACE_DAYS)


def issue_management_token(db: Session, booking: Booking) -> str:
    """Give the booking a token if it has none. Caller commits."""
    if booking.management_token:
        return booking.management_token
    for _ in range(5):
        token = generate_management_token()
        if not db.query(Booking.id).filter(Booking.management_token == token).first():
            break
    booking.management_token = token
    booking.management_token_expires_at = token_expiry_for(booking)
    return token


def _as_aware(value: datetime) -> datetime:
    # sqlite drops tzinfo on the way back
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def resolve_management_token(db: Session, token: str, now: datetime | None = None) -> Booking:
    token = (token or "").strip()
    if not token:
        raise NotFoundError("Booking not found.")
    matches = db.query(Booking).filter(Booking.management_token == token).limit(2).all()
    if len(matches) != 1:
        raise NotFoundError("Booking not found.")
    booking = matches[0]
    expires_at = booking.management_token_expires_at
    if expires_at and _as_aware(expires_at) < (now or datetime.now(timezone.utc)):
        raise ExpiredError("This management link has expired.")
    return booking


def cancel_by_token(db: Session, token: str) -> tuple[Booking, bool]:
    """Cancel through the manage link. Returns (booking, already_cancelled)."""
    booking = resolve_management_token(db, token)
    cancelled = EventStatus.CANCELLED.value
    if booking.status == cancelled:
        return booking, True
    if booking.booking_type == BookingType.SHOWING.value and booking.status == ShowingStatus.COMPLETED.value:
        raise ConflictError("A completed showing cannot be cancelled.")
    booking.status = cancelled
    db.commit()
    db.refresh(booking)
    return booking, False


SELF_SERVICE_FIELDS = (
    "contact_name",
    "contact_email",
    "contact_phone",
    "rect_tables_requested",
    "round_tables_requested",
    "chairs_requested",
    "setup_notes",
    "notes",
)


def update_by_token(db: Session, token: str, changes: dict) -> Booking:
    """Apply present keys from ``changes``; explicit None clears nullable fields."""
    booking = resolve_management_token(db, token)
    if booking.status == EventStatus.CANCELLED.value:
        raise ConflictError("You can't edit a cancelled booking.")

    fields = {name: changes[name] for name in SELF_SERVICE_FIELDS if name in changes}
    for name in ("contact_name", "contact_email"):
        if fields.get(name, "") is None:
            del fields[name]
    check_contact(fields)
    check_setup(fields)
    for name, value in fields.items():
        setattr(booking, name, value)

    if booking.booking_type == BookingType.EVENT.value and changes.get("add_ons") is not None:
        replace_booking_addons(db, booking, changes["add_ons"])

    db.commit()
    db.refresh(booking)
    return booking
