from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.core.config import settings
from app.models.booking import BookingType
from app.schemas.addon import addon_to_dict
from app.services.addon_service import list_addons
from app.services.availability_service import list_showing_slots, resolve_date_availability
from app.services.booking_service import day_summary as build_day_summary
from app.services.booking_status import parse_booking_type
from app.services.calendar_service import parse_calendar_date
from app.services.pricing_service import quote_pricing

router = APIRouter(tags=["public"])


@router.get("/public/availability")
def availability(date: str, db: Session = Depends(get_db)):
    day = parse_calendar_date(date)
    result = resolve_date_availability(db, day)
    return {"date": day.isoformat(), "status": result.status, "reason": result.reason}


@router.get("/public/day-summary")
def day_summary(date: str, db: Session = Depends(get_db)):
    return build_day_summary(db, parse_calendar_date(date))


@router.get("/public/showing-slots")
def showing_slots(date: str, db: Session = Depends(get_db)):
    day = parse_calendar_date(date)
    result = list_showing_slots(db, day)
    out = {
        "date": day.isoformat(),
        "slots": [
            {"time": s.time, "available": s.available, **({"reason": s.reason} if s.reason else {})}
            for s in result.slots
        ],
    }
    if result.blocked:
        out["blocked"] = True
        out["reason"] = result.reason
    return out


@router.get("/public/pricing")
def pricing_quote(eventDate: str, startTime: str, endTime: str, extraSetupHours: int = 0,
                  bookingType: str = BookingType.EVENT.value):
    """Price a window without booking it."""
    b = quote_pricing(eventDate, startTime, endTime, extraSetupHours, parse_booking_type(bookingType))
    return {
        "dayType": b.day_type,
        "hourlyRateCents": b.hourly_rate_cents,
        "eventHours": b.event_hours,
        "baseAmountCents": b.base_amount_cents,
        "extraSetupHours": b.extra_setup_hours,
        "extraSetupCents": b.extra_setup_cents,
        "depositCents": b.deposit_cents,
        "totalCents": b.total_cents,
        "includedSetupHours": settings.INCLUDED_SETUP_HOURS,
    }


@router.get("/public/addons")
def active_addons(db: Session = Depends(get_db)):
    return {"items": [addon_to_dict(a) for a in list_addons(db, active_only=True)]}
