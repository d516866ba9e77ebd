import logging
import uuid
from datetime import date, datetime, timedelta, timezone

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.models.blocked_date import BlockedDate
from app.models.booking import Booking, BookingType, EventStatus, ShowingStatus
from app.schemas.booking import (
    AdminBookingCreate,
    EventBookingCreate,
    EventBookingPatch,
    SetupUpdate,
    ShowingBookingCreate,
    ShowingBookingPatch,
    present_changes,
)
from app.services.addon_service import replace_booking_addons
from app.services.availability_service import (
    assert_date_not_blocked,
    assert_event_date_open,
    assert_showing_slot_open,
    resolve_date_availability,
    showing_end,
)
from app.services.booking_fields import check_contact, check_count, check_setup, optional_text, required_text
from app.services.booking_status import check_transition, parse_booking_type, parse_status
from app.services.calendar_service import format_hhmm, parse_calendar_date, to_local_datetime
from app.services.management_service import issue_management_token
from app.services.pricing_service import apply_pricing, day_type, quote_pricing
from app.services.showing_settings_service import DEFAULT_DURATION_MINUTES, get_showing_settings

logger = logging.getLogger(__name__)


def get_booking(db: Session, booking_id: str) -> Booking:
    b = db.get(Booking, booking_id)
    if not b:
        raise NotFoundError("Booking not found.")
    return b


def _commit(db: Session, message: str) -> None:
    """Commit, turning a unique-index race into a conflict."""
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning("Booking write lost a uniqueness race: %s", message)
        raise ConflictError(message)


def _end_hhmm(b: Booking) -> str:
    # an event ending at midnight is stored on the following day
    if b.end_time.date() > b.event_date:
        return "24:00"
    return format_hhmm(b.end_time)


def _showing_duration(db: Session) -> int:
    cfg = get_showing_settings(db)
    return cfg.default_duration_minutes if cfg else DEFAULT_DURATION_MINUTES


# ---------- create ----------

def create_event_booking(db: Session, data: EventBookingCreate | AdminBookingCreate,
                         status: EventStatus = EventStatus.PENDING,
                         admin_fields: dict | None = None) -> Booking:
    event_type = required_text(data.eventType, "Event type")
    contact_name = required_text(data.contactName, "Contact name")
    contact_email = required_text(data.contactEmail, "Contact email")

    breakdown = quote_pricing(data.eventDate, data.startTime or "", data.endTime or "",
                              data.extraSetupHours, BookingType.EVENT)
    day = parse_calendar_date(data.eventDate)
    start = to_local_datetime(day, data.startTime)
    end = to_local_datetime(day, data.endTime, allow_midnight_end=True)

    # a pending request may not target a blocked or confirmed date either
    assert_event_date_open(db, day)

    setup = check_setup({
        "guest_count": data.guestCount,
        "rect_tables_requested": data.rectTablesRequested,
        "round_tables_requested": data.roundTablesRequested,
        "chairs_requested": data.chairsRequested,
        "setup_notes": data.setupNotes,
    })

    b = Booking(
        id=str(uuid.uuid4()),
        booking_type=BookingType.EVENT.value,
        event_date=day,
        start_time=start,
        end_time=end,
        status=status.value,
        event_type=event_type,
        contact_name=contact_name,
        contact_email=contact_email.lower(),
        contact_phone=optional_text(data.contactPhone),
        notes=optional_text(data.notes),
        amount_paid_cents=0,
        contract_accepted=False,
        **setup,
    )
    apply_pricing(b, breakdown)
    for k, v in (admin_fields or {}).items():
        setattr(b, k, v)
    db.add(b)
    replace_booking_addons(db, b, [{"add_on_id": s.addOnId, "quantity": s.quantity} for s in data.addOns])
    issue_management_token(db, b)
    _commit(db, "This date is already booked for an event.")
    db.refresh(b)
    return b


def _parse_showing_start(event_date: str, appointment_time: str | None) -> tuple[date, datetime]:
    day = parse_calendar_date(event_date, "Invalid date format.")
    if not (appointment_time or "").strip():
        raise ValidationError("Appointment time is required for showings.")
    start = to_local_datetime(day, appointment_time)
    return day, start


def create_showing_booking(db: Session, data: ShowingBookingCreate | AdminBookingCreate,
                           status: ShowingStatus = ShowingStatus.PENDING,
                           require_window: bool = True,
                           admin_fields: dict | None = None) -> Booking:
    contact_name = required_text(data.contactName, "Contact name")
    contact_email = required_text(data.contactEmail, "Contact email")
    day, start = _parse_showing_start(data.eventDate, data.appointmentTime)
    duration = _showing_duration(db)

    assert_showing_slot_open(db, day, start, duration, require_window=require_window)

    b = Booking(
        id=str(uuid.uuid4()),
        booking_type=BookingType.SHOWING.value,
        event_date=day,
        start_time=start,
        end_time=showing_end(start, duration),
        status=status.value,
        day_type=day_type(day),
        hourly_rate_cents=0,
        event_hours=0,
        base_amount_cents=0,
        extra_setup_hours=0,
        extra_setup_cents=0,
        deposit_cents=0,
        total_cents=0,
        amount_paid_cents=0,
        contact_name=contact_name,
        contact_email=contact_email.lower(),
        contact_phone=optional_text(data.contactPhone),
        notes=optional_text(data.notes),
        contract_accepted=False,
    )
    for k, v in (admin_fields or {}).items():
        setattr(b, k, v)
    db.add(b)
    issue_management_token(db, b)
    _commit(db, "This showing time is already booked.")
    db.refresh(b)
    return b


def admin_create_booking(db: Session, data: AdminBookingCreate) -> Booking:
    booking_type = parse_booking_type(data.bookingType)
    admin_fields = {
        "admin_notes": optional_text(data.adminNotes),
        "payment_method": optional_text(data.paymentMethod),
    }
    if booking_type == BookingType.SHOWING:
        status = parse_status(booking_type, data.status or ShowingStatus.PENDING.value)
        return create_showing_booking(db, data, status=status, require_window=False, admin_fields=admin_fields)

    if not data.startTime or not data.endTime:
        raise ValidationError("Start time and end time are required for events.")
    status = parse_status(booking_type, data.status or EventStatus.CONFIRMED.value)
    paid = check_count(data.amountPaidCents, "Amount paid")
    admin_fields["amount_paid_cents"] = paid or 0
    return create_event_booking(db, data, status=status, admin_fields=admin_fields)


# ---------- edit ----------

def update_event_booking(db: Session, booking_id: str, patch: EventBookingPatch) -> Booking:
    b = get_booking(db, booking_id)
    if b.booking_type != BookingType.EVENT.value:
        raise ValidationError("Booking is not an event.")
    fields = patch.model_fields_set

    target = None
    if "status" in fields and patch.status is not None:
        target = parse_status(BookingType.EVENT, patch.status)
        if not check_transition(b, target):
            target = None

    new_date_str = patch.eventDate if "eventDate" in fields and patch.eventDate else b.event_date.isoformat()
    start_str = patch.startTime if "startTime" in fields and patch.startTime else format_hhmm(b.start_time)
    end_str = patch.endTime if "endTime" in fields and patch.endTime else _end_hhmm(b)
    extra = patch.extraSetupHours if "extraSetupHours" in fields and patch.extraSetupHours is not None else b.extra_setup_hours

    breakdown = quote_pricing(new_date_str, start_str, end_str, extra, BookingType.EVENT)
    day = parse_calendar_date(new_date_str)

    final_status = target.value if target else b.status
    if day != b.event_date or target == EventStatus.CONFIRMED:
        assert_date_not_blocked(db, day)
    if final_status == EventStatus.CONFIRMED.value:
        assert_event_date_open(db, day, exclude_id=b.id)

    changes = check_setup(present_changes(patch))
    if "amount_paid_cents" in changes:
        changes["amount_paid_cents"] = check_count(changes["amount_paid_cents"], "Amount paid") or 0
    if "event_type" in changes:
        changes["event_type"] = required_text(changes["event_type"], "Event type")
    check_contact(changes)
    replace_add_ons = "add_ons" in changes
    add_ons = changes.pop("add_ons", None)

    b.event_date = day
    b.start_time = to_local_datetime(day, start_str)
    b.end_time = to_local_datetime(day, end_str, allow_midnight_end=True)
    b.status = final_status
    apply_pricing(b, breakdown)
    for col, value in changes.items():
        setattr(b, col, value)
    if replace_add_ons:
        replace_booking_addons(db, b, add_ons or [])

    _commit(db, "This date already has a confirmed event booking.")
    db.refresh(b)
    return b


def update_showing_booking(db: Session, booking_id: str, patch: ShowingBookingPatch) -> Booking:
    b = get_booking(db, booking_id)
    if b.booking_type != BookingType.SHOWING.value:
        raise ValidationError("Booking is not a showing.")
    fields = patch.model_fields_set

    target = None
    if "status" in fields and patch.status is not None:
        target = parse_status(BookingType.SHOWING, patch.status)
        if not check_transition(b, target):
            target = None

    date_str = patch.eventDate if "eventDate" in fields and patch.eventDate else b.event_date.isoformat()
    time_str = patch.appointmentTime if "appointmentTime" in fields and patch.appointmentTime else format_hhmm(b.start_time)
    day, start = _parse_showing_start(date_str, time_str)
    moved = day != b.event_date or start != b.start_time

    final_status = target.value if target else b.status
    duration = _showing_duration(db)
    if moved and final_status != ShowingStatus.CANCELLED.value:
        assert_showing_slot_open(db, day, start, duration, exclude_id=b.id)

    changes = present_changes(patch)
    check_contact(changes)

    if moved:
        b.event_date = day
        b.start_time = start
        b.end_time = showing_end(start, duration)
        b.day_type = day_type(day)
    b.status = final_status
    for col, value in changes.items():
        setattr(b, col, value)

    _commit(db, "This showing time is already booked.")
    db.refresh(b)
    return b


def transition_status(db: Session, booking_id: str, raw_status: str) -> tuple[Booking, bool]:
    """Move a booking to ``raw_status``. Returns (booking, changed)."""
    b = get_booking(db, booking_id)
    target = parse_status(BookingType(b.booking_type), raw_status)
    if not check_transition(b, target):
        return b, False
    if b.booking_type == BookingType.EVENT.value and target == EventStatus.CONFIRMED:
        assert_event_date_open(db, b.event_date, exclude_id=b.id)
    b.status = target.value
    _commit(db, "This date already has a confirmed event booking.")
    db.refresh(b)
    return b, True


def update_setup(db: Session, booking_id: str, data: SetupUpdate) -> Booking:
    b = get_booking(db, booking_id)
    if b.booking_type != BookingType.EVENT.value:
        raise ValidationError("Setup details only apply to event bookings.")
    changes = check_setup(present_changes(data))
    for col, value in changes.items():
        setattr(b, col, value)
    db.commit()
    db.refresh(b)
    return b


# ---------- queries ----------

def bookings_on(db: Session, day: date, include_cancelled: bool = False) -> list[Booking]:
    q = db.query(Booking).filter(Booking.event_date == day)
    if not include_cancelled:
        q = q.filter(Booking.status != EventStatus.CANCELLED.value)
    return q.order_by(Booking.start_time.asc()).all()


def day_summary(db: Session, day: date) -> dict:
    availability = resolve_date_availability(db, day)
    return {
        "date": day.isoformat(),
        "status": availability.status,
        "reason": availability.reason,
        "bookings": [
            {
                "id": b.id,
                "bookingType": b.booking_type,
                "status": b.status,
                "startTime": format_hhmm(b.start_time),
                "endTime": _end_hhmm(b),
                "eventType": b.event_type,
                "guestCount": b.guest_count,
                "totalCents": b.total_cents,
            }
            for b in bookings_on(db, day)
        ],
    }


def calendar(db: Session, start: date, end: date, include_cancelled: bool = True) -> tuple[list[Booking], list[BlockedDate]]:
    if end < start:
        raise ValidationError("End date must not be before start date.")
    if (end - start) > timedelta(days=366):
        raise ValidationError("Calendar range cannot exceed one year.")
    q = db.query(Booking).filter(Booking.event_date >= start, Booking.event_date <= end)
    if not include_cancelled:
        q = q.filter(Booking.status != EventStatus.CANCELLED.value)
    bookings = q.order_by(Booking.event_date.asc(), Booking.start_time.asc()).all()
    blocked = (
        db.query(BlockedDate)
        .filter(BlockedDate.date >= start, BlockedDate.date <= end)
        .order_by(BlockedDate.date.asc())
        .all()
    )
    return bookings, blocked


def _iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    # sqlite hands back naive values for timezone-aware columns
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def booking_to_dict(b: Booking, include_admin: bool = False) -> dict:
    out = {
        "id": b.id,
        "bookingType": b.booking_type,
        "status": b.status,
        "eventDate": b.event_date.isoformat(),
        "startTime": format_hhmm(b.start_time),
        "endTime": _end_hhmm(b),
        "dayType": b.day_type,
        "hourlyRateCents": b.hourly_rate_cents,
        "eventHours": b.event_hours,
        "baseAmountCents": b.base_amount_cents,
        "extraSetupHours": b.extra_setup_hours,
        "extraSetupCents": b.extra_setup_cents,
        "depositCents": b.deposit_cents,
        "totalCents": b.total_cents,
        "addOnsTotalCents": b.add_ons_total_cents,
        "amountDueCents": b.amount_due_cents,
        "amountPaidCents": b.amount_paid_cents,
        "balanceCents": b.balance_cents,
        "stripePaymentStatus": b.stripe_payment_status,
        "eventType": b.event_type,
        "guestCount": b.guest_count,
        "contactName": b.contact_name,
        "contactEmail": b.contact_email,
        "contactPhone": b.contact_phone,
        "notes": b.notes,
        "rectTablesRequested": b.rect_tables_requested,
        "roundTablesRequested": b.round_tables_requested,
        "chairsRequested": b.chairs_requested,
        "setupNotes": b.setup_notes,
        "contractAccepted": b.contract_accepted,
        "contractAcceptedAt": _iso(b.contract_accepted_at),
        "contractSignerName": b.contract_signer_name,
        "contractVersion": b.contract_version,
        "addOns": [
            {
                "addOnId": line.add_on_id,
                "name": line.add_on.name if line.add_on else "",
                "quantity": line.quantity,
                "priceAtBooking": line.price_at_booking,
            }
            for line in b.add_ons
        ],
        "createdAt": _iso(b.created_at),
    }
    if include_admin:
        out["adminNotes"] = b.admin_notes
        out["paymentMethod"] = b.payment_method
        out["stripeCheckoutSessionId"] = b.stripe_checkout_session_id
        out["managementToken"] = b.management_token
        out["contractText"] = b.contract_text
    return out
