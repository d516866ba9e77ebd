from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.schemas.booking import ContractAcceptRequest, EventBookingCreate, SetupUpdate, ShowingBookingCreate
from app.services.booking_service import (
    booking_to_dict,
    create_event_booking,
    create_showing_booking,
    get_booking,
    update_setup,
)
from app.services.contract_service import accept_contract
from app.services.email_service import notify_booking

router = APIRouter(tags=["bookings"])


@router.post("/public/bookings/event")
def create_event(body: EventBookingCreate, background: BackgroundTasks, db: Session = Depends(get_db)):
    b = create_event_booking(db, body)
    background.add_task(notify_booking, b.id)
    return {"success": True, "bookingId": b.id, "managementToken": b.management_token, "booking": booking_to_dict(b)}


@router.post("/public/bookings/showing")
def create_showing(body: ShowingBookingCreate, background: BackgroundTasks, db: Session = Depends(get_db)):
    b = create_showing_booking(db, body)
    background.add_task(notify_booking, b.id)
    return {"success": True, "bookingId": b.id, "managementToken": b.management_token, "booking": booking_to_dict(b)}


@router.get("/public/bookings/{booking_id}")
def get_public_booking(booking_id: str, db: Session = Depends(get_db)):
    return booking_to_dict(get_booking(db, booking_id))


@router.post("/public/bookings/{booking_id}/accept-contract")
def accept_booking_contract(booking_id: str, body: ContractAcceptRequest, db: Session = Depends(get_db)):
    b = accept_contract(db, booking_id, body.signerName)
    return {
        "success": True,
        "contractAccepted": b.contract_accepted,
        "contractAcceptedAt": booking_to_dict(b)["contractAcceptedAt"],
        "contractSignerName": b.contract_signer_name,
        "contractVersion": b.contract_version,
    }


@router.patch("/public/bookings/{booking_id}/setup")
def patch_setup(booking_id: str, body: SetupUpdate, db: Session = Depends(get_db)):
    b = update_setup(db, booking_id, body)
    return {
        "rectTablesRequested": b.rect_tables_requested,
        "roundTablesRequested": b.round_tables_requested,
        "chairsRequested": b.chairs_requested,
        "setupNotes": b.setup_notes,
    }
