from datetime import datetime, timedelta, timezone

from factories import FRIDAY, MONDAY, SATURDAY, THURSDAY, event_payload, showing_payload

from app.models.booking import Booking
from app.services.showing_settings_service import initialize_showing_defaults

API = "/api/v1"


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_pricing_quote(client):
    r = client.get(f"{API}/public/pricing", params={"eventDate": FRIDAY, "startTime": "18:00", "endTime": "23:00"})
    assert r.status_code == 200
    body = r.json()
    assert body["dayType"] == "weekend"
    assert body["totalCents"] == 107500
    assert body["includedSetupHours"] == 2


def test_pricing_error_shape(client):
    r = client.get(f"{API}/public/pricing", params={"eventDate": SATURDAY, "startTime": "18:00", "endTime": "20:00"})
    assert r.status_code == 400
    assert r.json() == {"detail": "Weekend bookings require at least 4 event hours.", "code": "PricingError"}


def test_event_request_flow(client, sent_emails):
    r = client.post(f"{API}/public/bookings/event", json=event_payload())
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["booking"]["status"] == "PENDING"
    assert body["booking"]["amountDueCents"] == 107500
    assert "managementToken" not in body["booking"]
    token = body["managementToken"]

    assert len(sent_emails) == 1
    assert sent_emails[0]["to"] == "dana@example.com"
    assert f"https://hall.example.com/manage/booking/{token}" in sent_emails[0]["body"]

    summary = client.get(f"{API}/public/day-summary", params={"date": FRIDAY}).json()
    assert summary["status"] == "available"
    assert [b["id"] for b in summary["bookings"]] == [body["bookingId"]]


def test_availability_endpoint(client):
    r = client.get(f"{API}/public/availability", params={"date": MONDAY})
    assert r.json() == {"date": MONDAY, "status": "available", "reason": None}
    assert client.get(f"{API}/public/availability", params={"date": "not-a-date"}).status_code == 400


def test_showing_slots_and_booking(client, db):
    initialize_showing_defaults(db)
    slots = client.get(f"{API}/public/showing-slots", params={"date": THURSDAY}).json()["slots"]
    assert slots[0] == {"time": "15:00", "available": True}

    r = client.post(f"{API}/public/bookings/showing", json=showing_payload())
    assert r.status_code == 200
    assert r.json()["booking"]["endTime"] == "15:30"

    r = client.post(f"{API}/public/bookings/showing", json=showing_payload(contactName="Second"))
    assert r.status_code == 409
    assert r.json()["code"] == "ConflictError"


def test_showing_outside_window_rejected(client, db):
    initialize_showing_defaults(db)
    r = client.post(f"{API}/public/bookings/showing", json=showing_payload(appointmentTime="10:00"))
    assert r.status_code == 400


def test_contract_and_setup_endpoints(client):
    booking_id = client.post(f"{API}/public/bookings/event", json=event_payload()).json()["bookingId"]

    r = client.post(f"{API}/public/bookings/{booking_id}/accept-contract", json={"signerName": "Dana Rivers"})
    assert r.status_code == 200
    assert r.json()["contractVersion"] == "v1.0"

    r = client.patch(f"{API}/public/bookings/{booking_id}/setup", json={"roundTablesRequested": 4, "setupNotes": "Stage left"})
    assert r.json() == {
        "rectTablesRequested": None,
        "roundTablesRequested": 4,
        "chairsRequested": None,
        "setupNotes": "Stage left",
    }

    assert client.get(f"{API}/public/bookings/missing").status_code == 404


def test_public_addons_lists_active_only(client, wicker_chair, db):
    wicker_chair.active = False
    db.commit()
    assert client.get(f"{API}/public/addons").json() == {"items": []}


def test_manage_link_lifecycle(client, db):
    token = client.post(f"{API}/public/bookings/event", json=event_payload()).json()["managementToken"]

    r = client.get(f"{API}/manage/bookings/{token}")
    assert r.status_code == 200
    assert r.json()["contactName"] == "Dana Rivers"

    r = client.patch(f"{API}/manage/bookings/{token}", json={"notes": "Two cakes"})
    assert r.json()["notes"] == "Two cakes"

    r = client.post(f"{API}/manage/bookings/{token}/cancel")
    assert r.json() == {"success": True, "alreadyCancelled": False, "status": "CANCELLED"}
    r = client.post(f"{API}/manage/bookings/{token}/cancel")
    assert r.json()["alreadyCancelled"] is True

    assert client.get(f"{API}/manage/bookings/unknown-token").status_code == 404


def test_expired_manage_link_returns_gone(client, db):
    body = client.post(f"{API}/public/bookings/event", json=event_payload()).json()
    b = db.get(Booking, body["bookingId"])
    b.management_token_expires_at = datetime.now(timezone.utc) - timedelta(minutes=1)
    db.commit()

    r = client.get(f"{API}/manage/bookings/{body['managementToken']}")
    assert r.status_code == 410
    assert r.json()["code"] == "ExpiredError"


def test_manage_link_rejects_bad_setup(client):
    token = client.post(f"{API}/public/bookings/event", json=event_payload()).json()["managementToken"]
    r = client.patch(f"{API}/manage/bookings/{token}",
                     json={"chairsRequested": -5, "roundTablesRequested": 999, "contactName": ""})
    assert r.status_code == 400
    assert r.json()["code"] == "ValidationError"
    assert client.get(f"{API}/manage/bookings/{token}").json()["contactName"] == "Dana Rivers"
