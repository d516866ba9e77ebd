import uuid
from datetime import date
from sqlalchemy.orm import Session
from app.core.errors import NotFoundError
from app.models.blocked_date import BlockedDate


def list_blocked_dates(db: Session, start: date | None = None, end: date | None = None) -> list[BlockedDate]:
    q = db.query(BlockedDate)
    if start:
        q = q.filter(BlockedDate.date >= start)
    if end:
        q = q.filter(BlockedDate.date <= end)
    return q.order_by(BlockedDate.date.asc()).all()


def upsert_blocked_date(db: Session, day: date, reason: str | None = None) -> BlockedDate:
    """One row per date; blocking an already blocked date just replaces the reason."""
    reason = (reason or "").strip() or None
    row = db.query(BlockedDate).filter(BlockedDate.date == day).first()
    if row:
        row.reason = reason
    else:
        row = BlockedDate(id=str(uuid.uuid4()), date=day, reason=reason)
        db.add(row)
    db.commit()
    return row


def delete_blocked_date(db: Session, blocked_id: str) -> None:
    row = db.get(BlockedDate, blocked_id)
    if not row:
        raise NotFoundError("Blocked date not found.")
    db.delete(row)
    db.commit()
