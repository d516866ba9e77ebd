from fastapi import APIRouter, BackgroundTasks, Depends, Request
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.schemas.payments import CheckoutSessionRequest, ConfirmPaymentRequest
from app.services.booking_service import booking_to_dict
from app.services.email_service import notify_booking
from app.services.payment_service import (
    StripeGateway,
    confirm_checkout_session,
    create_checkout_session,
    get_payment_gateway,
    handle_webhook,
)

router = APIRouter(tags=["payments"])


@router.post("/payments/checkout-session")
def start_checkout(body: CheckoutSessionRequest, db: Session = Depends(get_db),
                   gateway: StripeGateway = Depends(get_payment_gateway)):
    _, session = create_checkout_session(db, body.bookingId, gateway)
    return {"url": session.url, "sessionId": session.id}


@router.post("/payments/confirm")
def confirm_payment(body: ConfirmPaymentRequest, background: BackgroundTasks, db: Session = Depends(get_db),
                    gateway: StripeGateway = Depends(get_payment_gateway)):
    b, applied = confirm_checkout_session(db, body.sessionId, gateway)
    if applied:
        background.add_task(notify_booking, b.id)
    return {"success": True, "booking": booking_to_dict(b)}


@router.post("/webhooks/stripe")
async def stripe_webhook(request: Request, background: BackgroundTasks, db: Session = Depends(get_db),
                         gateway: StripeGateway = Depends(get_payment_gateway)):
    payload = await request.body()
    result = handle_webhook(db, payload, request.headers.get("Stripe-Signature"), gateway)
    if result.get("handled") and result.get("bookingId"):
        background.add_task(notify_booking, result["bookingId"])
    return {"received": True}
