import uuid

from sqlalchemy.orm import Session

from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.models.addon import AddOn, BookingAddOn
from app.models.booking import Booking


def list_addons(db: Session, active_only: bool = False) -> list[AddOn]:
    q = db.query(AddOn)
    if active_only:
        q = q.filter(AddOn.active == True)  # noqa: E712
    return q.order_by(AddOn.sort_order.asc(), AddOn.name.asc()).all()


def get_addon(db: Session, addon_id: str) -> AddOn:
    a = db.get(AddOn, addon_id)
    if not a:
        raise NotFoundError("Add-on not found.")
    return a


def _clean_price(price_cents) -> int:
    if isinstance(price_cents, bool) or not isinstance(price_cents, int) or price_cents < 0:
        raise ValidationError("priceCents must be a non-negative integer.")
    return price_cents


def create_addon(db: Session, name: str, price_cents: int, description: str | None = None,
                 active: bool = True, sort_order: int = 0) -> AddOn:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Name is required.")
    a = AddOn(
        id=str(uuid.uuid4()),
        name=name,
        description=(description or "").strip() or None,
        price_cents=_clean_price(price_cents),
        active=bool(active),
        sort_order=int(sort_order or 0),
    )
    db.add(a)
    db.commit()
    return a


def update_addon(db: Session, addon_id: str, changes: dict) -> AddOn:
    """Apply present keys only. Existing booking lines keep their captured price."""
    a = get_addon(db, addon_id)
    if "name" in changes:
        name = (changes["name"] or "").strip()
        if not name:
            raise ValidationError("Name is required.")
        a.name = name
    if "description" in changes:
        a.description = (changes["description"] or "").strip() or None
    if "price_cents" in changes:
        a.price_cents = _clean_price(changes["price_cents"])
    if "active" in changes and changes["active"] is not None:
        a.active = bool(changes["active"])
    if "sort_order" in changes and changes["sort_order"] is not None:
        a.sort_order = int(changes["sort_order"])
    db.commit()
    return a


def delete_addon(db: Session, addon_id: str) -> None:
    a = get_addon(db, addon_id)
    in_use = db.query(BookingAddOn).filter(BookingAddOn.add_on_id == a.id).count()
    if in_use:
        raise ConflictError("This add-on is used by existing bookings. Deactivate it instead.")
    db.delete(a)
    db.commit()


def replace_booking_addons(db: Session, booking: Booking, selections: list[dict]) -> None:
    """Replace every add-on line on the booking, capturing current catalog prices.

    Unknown ids and non-positive quantities are dropped. Caller commits.
    """
    wanted = []
    for s in selections or []:
        addon_id = s.get("add_on_id")
        try:
            qty = int(s.get("quantity") or 0)
        except (TypeError, ValueError):
            continue
        if isinstance(addon_id, str) and addon_id and qty > 0:
            wanted.append((addon_id, qty))

    catalog = {}
    if wanted:
        rows = db.query(AddOn).filter(AddOn.id.in_([aid for aid, _ in wanted])).all()
        catalog = {a.id: a for a in rows}

    booking.add_ons.clear()
    for addon_id, qty in wanted:
        match = catalog.get(addon_id)
        if not match:
            continue
        booking.add_ons.append(BookingAddOn(
            id=str(uuid.uuid4()),
            add_on_id=match.id,
            quantity=qty,
            price_at_booking=match.price_cents,
        ))
