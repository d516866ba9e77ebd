import uuid, json
from sqlalchemy.orm import Session
from app.models.audit_log import AuditLog

def log_audit(db: Session, actor_user_id: str, action: str, entity_type: str, entity_id: str, details: dict | None = None):
    """Stage an audit row; it lands with the caller's next commit."""
    db.add(AuditLog(
        id=str(uuid.uuid4()),
        actor_user_id=actor_user_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        details_json=json.dumps(details or {}, ensure_ascii=False, default=str),
    ))

def list_audit(db: Session, entity_type: str, entity_id: str) -> list[dict]:
    rows = (
        db.query(AuditLog)
        .filter(AuditLog.entity_type == entity_type, AuditLog.entity_id == entity_id)
        .order_by(AuditLog.created_at.asc())
        .all()
    )
    return [
        {
            "actor": r.actor_user_id,
            "action": r.action,
            "details": json.loads(r.details_json or "{}"),
            "createdAt": r.created_at.isoformat() if r.created_at else None,
        }
        for r in rows
    ]
