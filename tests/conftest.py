import json
import os
import tempfile
import uuid

# Settings are read at import time; point them at a throwaway database first.
_DB_DIR = tempfile.mkdtemp(prefix="venue-tests-")
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(_DB_DIR, "test.db")
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["CLIENT_BASE_URL"] = "https://hall.example.com"
os.environ["ADMIN_NOTIFY_EMAIL"] = ""

import pytest
from fastapi.testclient import TestClient

from app.core.errors import NotFoundError, ValidationError
from app.core.security import create_access_token, hash_password
from app.db.session import Base, SessionLocal, engine
from app.main import app as fastapi_app
from app.models.addon import AddOn
from app.models.audit_log import AuditLog  # noqa: F401
from app.models.blocked_date import BlockedDate  # noqa: F401
from app.models.booking import Booking  # noqa: F401
from app.models.email_log import EmailLog  # noqa: F401
from app.models.showing import ShowingAvailability  # noqa: F401
from app.models.user import User
from app.services.payment_service import CheckoutSession, get_payment_gateway


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sent_emails(monkeypatch):
    sent = []

    def fake_send(to_email, subject, body):
        sent.append({"to": to_email, "subject": subject, "body": body})

    monkeypatch.setattr("app.services.email_service.send_email", fake_send)
    return sent


class FakeGateway:
    """In-memory stand-in for Stripe Checkout."""

    def __init__(self):
        self.sessions = {}

    def create_checkout_session(self, amount_cents, name, description, metadata):
        sid = f"cs_test_{len(self.sessions) + 1}"
        session = CheckoutSession(
            id=sid,
            url=f"https://checkout.test/{sid}",
            payment_status="unpaid",
            amount_total=amount_cents,
            metadata=dict(metadata),
        )
        self.sessions[sid] = session
        return session

    def mark_paid(self, sid):
        self.sessions[sid].payment_status = "paid"

    def retrieve_checkout_session(self, session_id):
        if session_id not in self.sessions:
            raise NotFoundError("Checkout session not found.")
        return self.sessions[session_id]

    def construct_webhook_event(self, payload, signature):
        if signature != "valid-signature":
            raise ValidationError("Invalid webhook signature.")
        data = json.loads(payload)
        return {"type": data["type"], "session": self.sessions[data["sessionId"]]}


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def client(sent_emails, gateway):
    fastapi_app.dependency_overrides[get_payment_gateway] = lambda: gateway
    with TestClient(fastapi_app) as c:
        yield c
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def admin_user(db):
    user = User(
        id=str(uuid.uuid4()),
        email="admin@venue.local",
        full_name="Admin",
        role="admin",
        password_hash=hash_password("admin12345"),
        is_active=True,
    )
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def admin_headers(admin_user):
    return {"Authorization": f"Bearer {create_access_token(admin_user.id)}"}


@pytest.fixture
def wicker_chair(db):
    addon = AddOn(id=str(uuid.uuid4()), name="Whicker Chair", price_cents=2500, active=True, sort_order=1)
    db.add(addon)
    db.commit()
    return addon

