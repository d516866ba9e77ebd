import json

from factories import MONDAY, SATURDAY, event_payload, showing_payload

from app.models.audit_log import AuditLog
from app.models.booking import Booking
from app.services.showing_settings_service import initialize_showing_defaults

API = "/api/v1"


def _create_event(client, **overrides):
    return client.post(f"{API}/public/bookings/event", json=event_payload(**overrides)).json()


def _checkout(client, booking_id):
    r = client.post(f"{API}/payments/checkout-session", json={"bookingId": booking_id})
    assert r.status_code == 200
    return r.json()["sessionId"]


def test_checkout_charges_full_amount_due(client, gateway, wicker_chair):
    booking = _create_event(client, addOns=[{"addOnId": wicker_chair.id, "quantity": 2}])
    r = client.post(f"{API}/payments/checkout-session", json={"bookingId": booking["bookingId"]})
    assert r.status_code == 200
    sid = r.json()["sessionId"]
    assert r.json()["url"] == f"https://checkout.test/{sid}"
    assert gateway.sessions[sid].amount_total == 107500 + 5000
    assert gateway.sessions[sid].metadata == {"bookingId": booking["bookingId"], "purpose": "booking"}


def test_unpaid_session_does_not_confirm(client):
    booking = _create_event(client)
    sid = _checkout(client, booking["bookingId"])
    r = client.post(f"{API}/payments/confirm", json={"sessionId": sid})
    assert r.status_code == 400
    assert r.json()["detail"] == "Payment not completed."


def test_confirm_is_idempotent(client, gateway, db):
    booking = _create_event(client)
    sid = _checkout(client, booking["bookingId"])
    gateway.mark_paid(sid)

    r = client.post(f"{API}/payments/confirm", json={"sessionId": sid})
    assert r.status_code == 200
    paid = r.json()["booking"]
    assert paid["status"] == "CONFIRMED"
    assert paid["amountPaidCents"] == 107500
    assert paid["balanceCents"] == 0

    r = client.post(f"{API}/payments/confirm", json={"sessionId": sid})
    assert r.json()["booking"]["amountPaidCents"] == 107500
    assert db.query(AuditLog).filter(AuditLog.action == "payment_recorded").count() == 1

    r = client.post(f"{API}/payments/checkout-session", json={"bookingId": booking["bookingId"]})
    assert r.status_code == 409


def test_confirm_needs_session_id(client):
    assert client.post(f"{API}/payments/confirm", json={}).status_code == 400
    assert client.post(f"{API}/payments/confirm", json={"sessionId": "cs_unknown"}).status_code == 404


def test_paying_for_a_taken_date_records_payment_but_conflicts(client, gateway, db):
    first = _create_event(client, eventDate=SATURDAY)
    second = _create_event(client, eventDate=SATURDAY, contactName="Late Payer")
    sid_first = _checkout(client, first["bookingId"])
    sid_second = _checkout(client, second["bookingId"])
    gateway.mark_paid(sid_first)
    gateway.mark_paid(sid_second)

    assert client.post(f"{API}/payments/confirm", json={"sessionId": sid_first}).status_code == 200
    r = client.post(f"{API}/payments/confirm", json={"sessionId": sid_second})
    assert r.status_code == 409

    late = db.get(Booking, second["bookingId"])
    assert late.status == "PENDING"
    assert late.stripe_payment_status == "paid"
    assert late.amount_paid_cents == late.total_cents


def test_showing_cannot_be_paid(client, db):
    initialize_showing_defaults(db)
    showing = client.post(f"{API}/public/bookings/showing", json=showing_payload()).json()
    r = client.post(f"{API}/payments/checkout-session", json={"bookingId": showing["bookingId"]})
    assert r.status_code == 400


def test_webhook_confirms_booking(client, gateway, sent_emails):
    booking = _create_event(client, eventDate=MONDAY, startTime="10:00", endTime="12:00")
    sid = _checkout(client, booking["bookingId"])
    gateway.mark_paid(sid)
    sent_before = len(sent_emails)

    payload = json.dumps({"type": "checkout.session.completed", "sessionId": sid})
    r = client.post(f"{API}/webhooks/stripe", content=payload, headers={"Stripe-Signature": "valid-signature"})
    assert r.status_code == 200
    assert r.json() == {"received": True}
    assert len(sent_emails) == sent_before + 1

    r = client.get(f"{API}/public/bookings/{booking['bookingId']}")
    assert r.json()["status"] == "CONFIRMED"

    # redelivery of the same event changes nothing
    client.post(f"{API}/webhooks/stripe", content=payload, headers={"Stripe-Signature": "valid-signature"})
    assert client.get(f"{API}/public/bookings/{booking['bookingId']}").json()["amountPaidCents"] == 50000
    assert len(sent_emails) == sent_before + 1


def test_webhook_rejects_bad_signature(client):
    r = client.post(f"{API}/webhooks/stripe", content=b"{}", headers={"Stripe-Signature": "forged"})
    assert r.status_code == 400


def test_expired_session_is_marked(client, gateway, db):
    booking = _create_event(client)
    sid = _checkout(client, booking["bookingId"])
    payload = json.dumps({"type": "checkout.session.expired", "sessionId": sid})
    client.post(f"{API}/webhooks/stripe", content=payload, headers={"Stripe-Signature": "valid-signature"})
    assert db.get(Booking, booking["bookingId"]).stripe_payment_status == "expired"


def test_manage_link_balance_checkout(client, gateway, admin_headers):
    created = client.post(
        f"{API}/admin/bookings",
        json=event_payload(amountPaidCents=20000, paymentMethod="check", sendAdminEmail=False),
        headers=admin_headers,
    ).json()
    token = created["booking"]["managementToken"]

    r = client.post(f"{API}/manage/bookings/{token}/checkout-session")
    assert r.status_code == 200
    session = gateway.sessions[r.json()["sessionId"]]
    assert session.amount_total == 87500
    assert session.metadata["purpose"] == "balance"

    gateway.mark_paid(session.id)
    r = client.post(f"{API}/payments/confirm", json={"sessionId": session.id})
    assert r.json()["booking"]["amountPaidCents"] == 107500
    assert client.post(f"{API}/manage/bookings/{token}/checkout-session").status_code == 400


def test_earlier_session_is_not_credited_again(client, gateway, db, wicker_chair):
    booking = _create_event(client)
    first = _checkout(client, booking["bookingId"])
    gateway.mark_paid(first)
    assert client.post(f"{API}/payments/confirm", json={"sessionId": first}).json()["booking"]["amountPaidCents"] == 107500

    token = booking["managementToken"]
    client.patch(f"{API}/manage/bookings/{token}", json={"addOns": [{"addOnId": wicker_chair.id, "quantity": 1}]})
    balance = client.post(f"{API}/manage/bookings/{token}/checkout-session").json()["sessionId"]
    assert gateway.sessions[balance].amount_total == 2500

    r = client.post(f"{API}/payments/confirm", json={"sessionId": first})
    assert r.status_code == 200
    assert r.json()["booking"]["amountPaidCents"] == 107500

    payload = json.dumps({"type": "checkout.session.completed", "sessionId": first})
    client.post(f"{API}/webhooks/stripe", content=payload, headers={"Stripe-Signature": "valid-signature"})
    assert db.get(Booking, booking["bookingId"]).amount_paid_cents == 107500

    gateway.mark_paid(balance)
    r = client.post(f"{API}/payments/confirm", json={"sessionId": balance})
    assert r.json()["booking"]["amountPaidCents"] == 110000
    assert r.json()["booking"]["balanceCents"] == 0
    assert db.query(AuditLog).filter(AuditLog.action == "payment_recorded").count() == 2
