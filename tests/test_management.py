from datetime import datetime, timedelta, timezone

import pytest

from factories import event_payload

from app.core.errors import ConflictError, ExpiredError, NotFoundError, ValidationError
from app.models.booking import EventStatus
from app.schemas.booking import EventBookingCreate
from app.services.booking_service import create_event_booking
from app.services.management_service import (
    cancel_by_token,
    resolve_management_token,
    token_expiry_for,
    update_by_token,
)


@pytest.fixture
def booking(db):
    return create_event_booking(db, EventBookingCreate(**event_payload()))


def test_expiry_is_grace_period_after_event_day(booking):
    assert token_expiry_for(booking) == datetime(2030, 7, 7, 23, 59, 59, tzinfo=timezone.utc)


def test_token_resolves_booking(db, booking):
    assert resolve_management_token(db, booking.management_token).id == booking.id


def test_unknown_token(db, booking):
    with pytest.raises(NotFoundError):
        resolve_management_token(db, "not-a-real-token")
    with pytest.raises(NotFoundError):
        resolve_management_token(db, "")


def test_expired_token_is_distinct_from_unknown(db, booking):
    later = datetime(2030, 7, 8, tzinfo=timezone.utc)
    with pytest.raises(ExpiredError):
        resolve_management_token(db, booking.management_token, now=later)


def test_cancel_is_idempotent(db, booking):
    b, already = cancel_by_token(db, booking.management_token)
    assert b.status == EventStatus.CANCELLED.value
    assert not already
    _, already = cancel_by_token(db, booking.management_token)
    assert already


def test_self_service_edit(db, booking, wicker_chair):
    b = update_by_token(db, booking.management_token, {
        "contact_phone": None,
        "chairs_requested": 80,
        "add_ons": [{"add_on_id": wicker_chair.id, "quantity": 2}],
        "status": "CONFIRMED",
    })
    assert b.contact_phone is None
    assert b.chairs_requested == 80
    assert b.add_ons_total_cents == 5000
    assert b.status == EventStatus.PENDING.value


def test_cancelled_booking_cannot_be_edited(db, booking):
    cancel_by_token(db, booking.management_token)
    with pytest.raises(ConflictError):
        update_by_token(db, booking.management_token, {"notes": "late change"})


def test_expired_link_blocks_edits(db, booking):
    booking.management_token_expires_at = datetime.now(timezone.utc) - timedelta(days=1)
    db.commit()
    with pytest.raises(ExpiredError):
        update_by_token(db, booking.management_token, {"notes": "too late"})


def test_self_service_edit_validates_setup_and_contact(db, booking):
    with pytest.raises(ValidationError, match="non-negative"):
        update_by_token(db, booking.management_token, {"chairs_requested": -5})
    with pytest.raises(ValidationError, match="cannot exceed"):
        update_by_token(db, booking.management_token, {"round_tables_requested": 999})
    with pytest.raises(ValidationError, match="Contact name is required"):
        update_by_token(db, booking.management_token, {"contact_name": "  "})

    db.refresh(booking)
    assert booking.chairs_requested is None
    assert booking.round_tables_requested is None
    assert booking.contact_name == "Dana Rivers"


def test_self_service_contact_change_is_normalized(db, booking):
    b = update_by_token(db, booking.management_token, {
        "contact_name": " Dana R. ",
        "contact_email": "New@Example.com",
        "setup_notes": "   ",
    })
    assert b.contact_name == "Dana R."
    assert b.contact_email == "new@example.com"
    assert b.setup_notes is None
