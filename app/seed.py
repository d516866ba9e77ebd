import logging
import uuid

from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, ProgrammingError

from app.db.session import SessionLocal
from app.core.config import settings
from app.core.security import hash_password
from app.models.addon import AddOn
from app.models.user import User
from app.services.showing_settings_service import initialize_showing_defaults

logger = logging.getLogger(__name__)

DEFAULT_ADDONS = [
    {"name": "Whicker Chair", "description": "Decorative wicker accent chair", "price_cents": 2500, "sort_order": 1},
]


def ensure_user(db: Session, email: str, password: str, role: str, name: str):
    email = email.strip().lower()
    u = db.query(User).filter(User.email == email).first()
    if u:
        return
    db.add(
        User(
            id=str(uuid.uuid4()),
            email=email,
            full_name=name,
            role=role,
            password_hash=hash_password(password),
            is_active=True,
        )
    )
    db.commit()


def ensure_addons(db: Session):
    for item in DEFAULT_ADDONS:
        if db.query(AddOn).filter(AddOn.name == item["name"]).first():
            continue
        db.add(AddOn(id=str(uuid.uuid4()), active=True, **item))
    db.commit()


def run(db=None):
    if db is None:
        db = SessionLocal()
    try:
        # If migrations haven't been applied yet, seeding must not crash the API.
        try:
            db.execute(text("SELECT 1 FROM users LIMIT 1"))
        except (ProgrammingError, OperationalError):
            db.rollback()
            logger.warning("users table not found yet. Skipping seeding (run alembic upgrade head).")
            return

        ensure_user(db, settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD, "admin", "Admin")
        initialize_showing_defaults(db)
        ensure_addons(db)
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    run()
