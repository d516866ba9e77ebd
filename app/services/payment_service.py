"""
Stripe Checkout for event bookings.

The gateway is a small class behind ``get_payment_gateway`` so routes get it
through FastAPI dependencies and tests can swap in a fake. Booking state only
changes after Stripe reports the session as paid, either through the confirm
call from the success page or through the webhook; both paths are idempotent
per checkout session.
"""
import json
import logging
from dataclasses import dataclass, field

import stripe
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import ConflictError, DependencyError, NotFoundError, ValidationError
from app.models.audit_log import AuditLog
from app.models.booking import Booking, BookingType, EventStatus
from app.services.audit_service import log_audit
from app.services.availability_service import find_blocking_event

logger = logging.getLogger(__name__)

DEFAULT_PAYMENT_STATUS = "requires_payment_method"
PAID = "paid"

PURPOSE_BOOKING = "booking"
PURPOSE_BALANCE = "balance"

PAYMENT_RECORDED = "payment_recorded"


@dataclass
class CheckoutSession:
    id: str
    url: str | None = None
    payment_status: str | None = None
    amount_total: int | None = None
    metadata: dict = field(default_factory=dict)


def _field(obj, key: str):
    try:
        return obj[key]
    except (KeyError, TypeError):
        return None


def _to_session(obj) -> CheckoutSession:
    meta = _field(obj, "metadata") or {}
    return CheckoutSession(
        id=_field(obj, "id"),
        url=_field(obj, "url"),
        payment_status=_field(obj, "payment_status"),
        amount_total=_field(obj, "amount_total"),
        metadata={k: meta[k] for k in meta.keys()} if meta else {},
    )


class StripeGateway:
    def __init__(self, api_key: str | None = None, webhook_secret: str | None = None):
        self.api_key = api_key if api_key is not None else settings.STRIPE_SECRET_KEY
        self.webhook_secret = webhook_secret if webhook_secret is not None else settings.STRIPE_WEBHOOK_SECRET

    def _configure(self) -> None:
        if not self.api_key:
            raise DependencyError("Payments are not configured.")
        stripe.api_key = self.api_key

    def create_checkout_session(self, amount_cents: int, name: str, description: str, metadata: dict) -> CheckoutSession:
        self._configure()
        if not settings.STRIPE_SUCCESS_URL or not settings.STRIPE_CANCEL_URL:
            raise DependencyError("Stripe success/cancel URLs are not configured.")
        try:
            session = stripe.checkout.Session.create(
                mode="payment",
                payment_method_types=["card"],
                line_items=[{
                    "price_data": {
                        "currency": settings.STRIPE_CURRENCY,
                        "unit_amount": amount_cents,
                        "product_data": {"name": name, "description": description},
                    },
                    "quantity": 1,
                }],
                success_url=settings.STRIPE_SUCCESS_URL,
                cancel_url=settings.STRIPE_CANCEL_URL,
                metadata=metadata,
            )
        except stripe.StripeError:
            logger.exception("Stripe checkout session creation failed")
            raise DependencyError("Unable to start payment at this time.")
        return _to_session(session)

    def retrieve_checkout_session(self, session_id: str) -> CheckoutSession:
        self._configure()
        try:
            session = stripe.checkout.Session.retrieve(session_id)
        except stripe.InvalidRequestError:
            raise NotFoundError("Checkout session not found.")
        except stripe.StripeError:
            logger.exception("Stripe checkout session lookup failed")
            raise DependencyError("Unable to confirm payment at this time.")
        return _to_session(session)

    def construct_webhook_event(self, payload: bytes, signature: str | None) -> dict:
        if not self.webhook_secret:
            raise DependencyError("Webhook secret not configured.")
        try:
            event = stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except (ValueError, stripe.SignatureVerificationError):
            logger.warning("Rejected Stripe webhook with invalid payload or signature")
            raise ValidationError("Invalid webhook signature.")
        obj = event["data"]["object"]
        return {"type": event["type"], "session": _to_session(obj)}


def get_payment_gateway() -> StripeGateway:
    return StripeGateway()


def _product_name(b: Booking, purpose: str) -> str:
    label = b.event_type or "Event"
    if purpose == PURPOSE_BALANCE:
        return f"Remaining balance – {label} at {settings.VENUE_NAME}"
    return f"Event Booking – {label} at {settings.VENUE_NAME}"


def _start_checkout(db: Session, b: Booking, amount_cents: int, purpose: str, gateway: StripeGateway) -> CheckoutSession:
    session = gateway.create_checkout_session(
        amount_cents=amount_cents,
        name=_product_name(b, purpose),
        description=f"Event on {b.event_date.isoformat()} for {b.contact_name}",
        metadata={"bookingId": b.id, "purpose": purpose},
    )
    b.stripe_checkout_session_id = session.id
    b.stripe_payment_status = DEFAULT_PAYMENT_STATUS
    db.commit()
    return session


def create_checkout_session(db: Session, booking_id: str, gateway: StripeGateway) -> tuple[Booking, CheckoutSession]:
    b = db.get(Booking, booking_id)
    if not b:
        raise NotFoundError("Booking not found.")
    if b.booking_type != BookingType.EVENT.value:
        raise ValidationError("Only event bookings require payment.")
    if b.status == EventStatus.CANCELLED.value:
        raise ConflictError("This booking has been cancelled.")
    if b.amount_due_cents <= 0:
        raise ValidationError("Booking total must be greater than zero.")
    if b.stripe_payment_status == PAID or b.balance_cents <= 0:
        raise ConflictError("This booking is already paid.")
    return b, _start_checkout(db, b, b.balance_cents, PURPOSE_BOOKING, gateway)


def create_balance_checkout(db: Session, b: Booking, gateway: StripeGateway) -> CheckoutSession:
    """Checkout for whatever is still owed. ``b`` comes from a resolved management token."""
    if b.booking_type != BookingType.EVENT.value:
        raise ValidationError("Only event bookings require payment.")
    if b.status == EventStatus.CANCELLED.value:
        raise ConflictError("This booking has been cancelled.")
    remaining = b.balance_cents
    if remaining <= 0:
        raise ValidationError("There is no remaining balance on this booking.")
    return _start_checkout(db, b, remaining, PURPOSE_BALANCE, gateway)


def session_already_recorded(db: Session, booking_id: str, session_id: str) -> bool:
    rows = (
        db.query(AuditLog.details_json)
        .filter(
            AuditLog.action == PAYMENT_RECORDED,
            AuditLog.entity_type == "booking",
            AuditLog.entity_id == booking_id,
        )
        .all()
    )
    return any(json.loads(details or "{}").get("sessionId") == session_id for (details,) in rows)


def record_checkout_payment(db: Session, b: Booking, session: CheckoutSession, actor: str) -> bool:
    """Apply a paid session to the booking. Returns False if this session was already applied.

    A booking can see several sessions (initial payment, then a balance), so the
    check is against every recorded session, not just the latest one.
    """
    if session_already_recorded(db, b.id, session.id):
        return False

    b.amount_paid_cents = (b.amount_paid_cents or 0) + int(session.amount_total or 0)
    b.stripe_checkout_session_id = session.id
    b.stripe_payment_status = PAID
    b.payment_method = "stripe"
    log_audit(db, actor_user_id=actor, action=PAYMENT_RECORDED, entity_type="booking", entity_id=b.id,
              details={"sessionId": session.id, "amountCents": session.amount_total or 0})
    db.commit()

    if b.status == EventStatus.CANCELLED.value:
        logger.warning("Payment %s received for cancelled booking %s", session.id, b.id)
        return True
    if b.status != EventStatus.CONFIRMED.value:
        taken = "Payment received, but this date is no longer available. We will contact you."
        if find_blocking_event(db, b.event_date, exclude_id=b.id):
            logger.error("Payment %s received but %s already has a confirmed event", session.id, b.event_date)
            raise ConflictError(taken)
        b.status = EventStatus.CONFIRMED.value
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.error("Payment %s received but %s was confirmed concurrently", session.id, b.event_date)
            raise ConflictError(taken)
    return True


def confirm_checkout_session(db: Session, session_id: str, gateway: StripeGateway) -> tuple[Booking, bool]:
    """Returns (booking, applied); applied is False when the session had already been recorded."""
    if not (session_id or "").strip():
        raise ValidationError("Missing sessionId.")
    session = gateway.retrieve_checkout_session(session_id)
    if session.payment_status != PAID:
        raise ValidationError("Payment not completed.")
    booking_id = session.metadata.get("bookingId")
    if not booking_id:
        raise ValidationError("Booking metadata missing from session.")
    b = db.get(Booking, booking_id)
    if not b:
        raise NotFoundError("Booking not found.")
    if b.booking_type != BookingType.EVENT.value:
        raise ValidationError("Payment confirmation is only available for event bookings.")
    applied = record_checkout_payment(db, b, session, actor="stripe_confirm")
    db.refresh(b)
    return b, applied


def handle_webhook(db: Session, payload: bytes, signature: str | None, gateway: StripeGateway) -> dict:
    event = gateway.construct_webhook_event(payload, signature)
    session: CheckoutSession = event["session"]
    b = None
    booking_id = session.metadata.get("bookingId")
    if booking_id:
        b = db.get(Booking, booking_id)
    if not b and session.id:
        b = db.query(Booking).filter(Booking.stripe_checkout_session_id == session.id).first()
    if not b:
        return {"received": True, "handled": False}

    if event["type"] == "checkout.session.completed" and session.payment_status == PAID:
        applied = record_checkout_payment(db, b, session, actor="stripe_webhook")
        return {"received": True, "handled": applied, "bookingId": b.id}
    if event["type"] == "checkout.session.expired" and b.stripe_checkout_session_id == session.id \
            and b.stripe_payment_status != PAID:
        b.stripe_payment_status = "expired"
        db.commit()
        return {"received": True, "handled": True}
    return {"received": True, "handled": False}
