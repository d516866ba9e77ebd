from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.schemas.booking import ManageBookingPatch, present_changes
from app.services.audit_service import log_audit
from app.services.booking_service import booking_to_dict
from app.services.management_service import cancel_by_token, resolve_management_token, update_by_token
from app.services.payment_service import StripeGateway, create_balance_checkout, get_payment_gateway

router = APIRouter(tags=["manage"])


@router.get("/manage/bookings/{token}")
def get_managed_booking(token: str, db: Session = Depends(get_db)):
    return booking_to_dict(resolve_management_token(db, token))


@router.patch("/manage/bookings/{token}")
def patch_managed_booking(token: str, body: ManageBookingPatch, db: Session = Depends(get_db)):
    b = update_by_token(db, token, present_changes(body))
    return booking_to_dict(b)


@router.post("/manage/bookings/{token}/cancel")
def cancel_managed_booking(token: str, db: Session = Depends(get_db)):
    b, already = cancel_by_token(db, token)
    if not already:
        log_audit(db, actor_user_id="manage_link", action="booking.cancelled", entity_type="booking", entity_id=b.id)
        db.commit()
    return {"success": True, "alreadyCancelled": already, "status": b.status}


@router.post("/manage/bookings/{token}/checkout-session")
def balance_checkout(token: str, db: Session = Depends(get_db),
                     gateway: StripeGateway = Depends(get_payment_gateway)):
    b = resolve_management_token(db, token)
    session = create_balance_checkout(db, b, gateway)
    return {"url": session.url, "sessionId": session.id}
