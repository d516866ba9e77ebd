from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import require_admin
from app.models.user import User
from app.schemas.addon import AddOnCreate, AddOnUpdate, addon_changes, addon_to_dict
from app.schemas.availability import (
    BlockedDateCreate,
    ShowingAvailabilityUpdate,
    blocked_to_dict,
    config_to_dict,
    window_to_dict,
)
from app.schemas.booking import AdminBookingCreate, EventBookingPatch, ShowingBookingPatch, StatusUpdate
from app.services import addon_service, blocked_date_service
from app.services.audit_service import list_audit, log_audit
from app.services.booking_service import (
    admin_create_booking,
    booking_to_dict,
    calendar,
    get_booking,
    transition_status,
    update_event_booking,
    update_showing_booking,
)
from app.services.calendar_service import parse_calendar_date
from app.services.email_service import notify_booking
from app.services.showing_settings_service import (
    ensure_showing_config,
    initialize_showing_defaults,
    list_windows,
    update_showing_availability,
)

router = APIRouter(tags=["admin"])


# ---------- calendar & bookings ----------

@router.get("/admin/calendar")
def admin_calendar(start: str, end: str, includeCancelled: bool = True,
                   db: Session = Depends(get_db), me: User = Depends(require_admin)):
    bookings, blocked = calendar(db, parse_calendar_date(start), parse_calendar_date(end), include_cancelled=includeCancelled)
    return {
        "bookings": [booking_to_dict(b, include_admin=True) for b in bookings],
        "blockedDates": [blocked_to_dict(d) for d in blocked],
    }


@router.get("/admin/bookings/{booking_id}")
def admin_get_booking(booking_id: str, db: Session = Depends(get_db), me: User = Depends(require_admin)):
    b = get_booking(db, booking_id)
    out = booking_to_dict(b, include_admin=True)
    out["history"] = list_audit(db, "booking", b.id)
    return out


@router.post("/admin/bookings")
def admin_create(body: AdminBookingCreate, background: BackgroundTasks,
                 db: Session = Depends(get_db), me: User = Depends(require_admin)):
    b = admin_create_booking(db, body)
    log_audit(db, actor_user_id=me.email, action="booking.created", entity_type="booking", entity_id=b.id,
              details={"bookingType": b.booking_type, "status": b.status})
    db.commit()
    background.add_task(notify_booking, b.id, body.sendAdminEmail)
    return {"success": True, "bookingId": b.id, "booking": booking_to_dict(b, include_admin=True)}


@router.patch("/admin/events/{booking_id}")
def admin_edit_event(booking_id: str, body: EventBookingPatch,
                     db: Session = Depends(get_db), me: User = Depends(require_admin)):
    b = update_event_booking(db, booking_id, body)
    log_audit(db, actor_user_id=me.email, action="booking.updated", entity_type="booking", entity_id=b.id,
              details={"fields": sorted(body.model_fields_set)})
    db.commit()
    return booking_to_dict(b, include_admin=True)


@router.patch("/admin/showings/{booking_id}")
def admin_edit_showing(booking_id: str, body: ShowingBookingPatch,
                       db: Session = Depends(get_db), me: User = Depends(require_admin)):
    b = update_showing_booking(db, booking_id, body)
    log_audit(db, actor_user_id=me.email, action="booking.updated", entity_type="booking", entity_id=b.id,
              details={"fields": sorted(body.model_fields_set)})
    db.commit()
    return booking_to_dict(b, include_admin=True)


@router.post("/admin/bookings/{booking_id}/status")
def admin_set_status(booking_id: str, body: StatusUpdate,
                     db: Session = Depends(get_db), me: User = Depends(require_admin)):
    b, changed = transition_status(db, booking_id, body.status)
    if changed:
        log_audit(db, actor_user_id=me.email, action="booking.status_changed", entity_type="booking",
                  entity_id=b.id, details={"status": b.status})
        db.commit()
    return {"success": True, "changed": changed, "status": b.status}


# ---------- blocked dates ----------

@router.get("/admin/blocked-dates")
def admin_blocked_dates(start: str | None = None, end: str | None = None,
                        db: Session = Depends(get_db), me: User = Depends(require_admin)):
    rows = blocked_date_service.list_blocked_dates(
        db,
        parse_calendar_date(start) if start else None,
        parse_calendar_date(end) if end else None,
    )
    return {"items": [blocked_to_dict(r) for r in rows]}


@router.post("/admin/blocked-dates")
def admin_block_date(body: BlockedDateCreate, db: Session = Depends(get_db), me: User = Depends(require_admin)):
    row = blocked_date_service.upsert_blocked_date(db, parse_calendar_date(body.date), body.reason)
    log_audit(db, actor_user_id=me.email, action="blocked_date.saved", entity_type="blocked_date", entity_id=row.id,
              details={"date": row.date.isoformat(), "reason": row.reason})
    db.commit()
    return blocked_to_dict(row)


@router.delete("/admin/blocked-dates/{blocked_id}")
def admin_unblock_date(blocked_id: str, db: Session = Depends(get_db), me: User = Depends(require_admin)):
    blocked_date_service.delete_blocked_date(db, blocked_id)
    log_audit(db, actor_user_id=me.email, action="blocked_date.deleted", entity_type="blocked_date", entity_id=blocked_id)
    db.commit()
    return {"success": True}


# ---------- add-ons ----------

@router.get("/admin/addons")
def admin_addons(db: Session = Depends(get_db), me: User = Depends(require_admin)):
    return {"items": [addon_to_dict(a) for a in addon_service.list_addons(db)]}


@router.post("/admin/addons")
def admin_create_addon(body: AddOnCreate, db: Session = Depends(get_db), me: User = Depends(require_admin)):
    a = addon_service.create_addon(db, body.name, body.priceCents, body.description, body.active, body.sortOrder)
    log_audit(db, actor_user_id=me.email, action="add_on.created", entity_type="add_on", entity_id=a.id,
              details={"name": a.name, "priceCents": a.price_cents})
    db.commit()
    return addon_to_dict(a)


@router.patch("/admin/addons/{addon_id}")
def admin_update_addon(addon_id: str, body: AddOnUpdate, db: Session = Depends(get_db), me: User = Depends(require_admin)):
    a = addon_service.update_addon(db, addon_id, addon_changes(body))
    log_audit(db, actor_user_id=me.email, action="add_on.updated", entity_type="add_on", entity_id=a.id,
              details={"fields": sorted(body.model_fields_set)})
    db.commit()
    return addon_to_dict(a)


@router.delete("/admin/addons/{addon_id}")
def admin_delete_addon(addon_id: str, db: Session = Depends(get_db), me: User = Depends(require_admin)):
    addon_service.delete_addon(db, addon_id)
    log_audit(db, actor_user_id=me.email, action="add_on.deleted", entity_type="add_on", entity_id=addon_id)
    db.commit()
    return {"success": True}


# ---------- showing availability ----------

@router.get("/admin/showing-availability")
def admin_showing_availability(db: Session = Depends(get_db), me: User = Depends(require_admin)):
    cfg = ensure_showing_config(db)
    return {
        "availability": [window_to_dict(w) for w in list_windows(db)],
        "config": config_to_dict(cfg),
    }


@router.post("/admin/showing-availability")
def admin_update_showing_availability(body: ShowingAvailabilityUpdate,
                                      db: Session = Depends(get_db), me: User = Depends(require_admin)):
    windows = None
    if body.availability is not None:
        windows = [
            {"day_of_week": w.dayOfWeek, "start_time": w.startTime, "end_time": w.endTime, "enabled": w.enabled}
            for w in body.availability
        ]
    config = None
    if body.config is not None:
        config = {
            "default_duration_minutes": body.config.defaultDurationMinutes,
            "max_slots_per_window": body.config.maxSlotsPerWindow,
        }
    rows, cfg = update_showing_availability(db, windows, config)
    log_audit(db, actor_user_id=me.email, action="showing_availability.updated", entity_type="showing_availability",
              entity_id=cfg.id if cfg else "", details={"windows": len(rows)})
    db.commit()
    return {"availability": [window_to_dict(w) for w in rows], "config": config_to_dict(cfg)}


@router.post("/admin/showing-availability/initialize")
def admin_initialize_showing_availability(db: Session = Depends(get_db), me: User = Depends(require_admin)):
    initialize_showing_defaults(db)
    return {"success": True, "message": "Default showing availability initialized"}
