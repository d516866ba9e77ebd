import uuid

from factories import FRIDAY, MONDAY, THURSDAY, event_payload, showing_payload

from app.core.security import create_access_token, hash_password
from app.models.user import User

API = "/api/v1"


def test_admin_routes_require_a_token(client):
    r = client.get(f"{API}/admin/addons")
    assert r.status_code == 401
    assert r.json()["code"] == "UnauthorizedError"


def test_non_admin_is_forbidden(client, db):
    staff = User(id=str(uuid.uuid4()), email="staff@venue.local", role="staff",
                 password_hash=hash_password("staff12345"), is_active=True)
    db.add(staff)
    db.commit()
    headers = {"Authorization": f"Bearer {create_access_token(staff.id)}"}
    assert client.get(f"{API}/admin/addons", headers=headers).status_code == 403


def test_login_and_me(client, admin_user):
    r = client.post(f"{API}/auth/login", json={"email": "Admin@Venue.local", "password": "admin12345"})
    assert r.status_code == 200
    tokens = r.json()
    me = client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {tokens['access_token']}"})
    assert me.json()["role"] == "admin"

    # a refresh token is not an access token
    r = client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {tokens['refresh_token']}"})
    assert r.status_code == 401

    bad = client.post(f"{API}/auth/login", json={"email": "admin@venue.local", "password": "wrong"})
    assert bad.status_code == 401


def test_admin_create_and_status_change(client, admin_headers, sent_emails):
    r = client.post(f"{API}/admin/bookings", json=event_payload(status="PENDING", sendAdminEmail=False),
                    headers=admin_headers)
    assert r.status_code == 200
    booking_id = r.json()["bookingId"]

    r = client.post(f"{API}/admin/bookings/{booking_id}/status", json={"status": "CONFIRMED"}, headers=admin_headers)
    assert r.json() == {"success": True, "changed": True, "status": "CONFIRMED"}
    r = client.post(f"{API}/admin/bookings/{booking_id}/status", json={"status": "CONFIRMED"}, headers=admin_headers)
    assert r.json()["changed"] is False

    detail = client.get(f"{API}/admin/bookings/{booking_id}", headers=admin_headers).json()
    assert [h["action"] for h in detail["history"]] == ["booking.created", "booking.status_changed"]
    assert detail["history"][0]["actor"] == "admin@venue.local"

    r = client.post(f"{API}/public/bookings/event", json=event_payload())
    assert r.status_code == 409


def test_admin_edits(client, admin_headers, db):
    booking_id = client.post(f"{API}/admin/bookings", json=event_payload(), headers=admin_headers).json()["bookingId"]
    r = client.patch(f"{API}/admin/events/{booking_id}", json={"adminNotes": "Paid by check", "endTime": "24:00"},
                     headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["adminNotes"] == "Paid by check"
    assert r.json()["endTime"] == "24:00"
    assert r.json()["eventHours"] == 6

    client.post(f"{API}/admin/showing-availability/initialize", headers=admin_headers)
    showing_id = client.post(f"{API}/admin/bookings", json=showing_payload(bookingType="SHOWING"),
                             headers=admin_headers).json()["bookingId"]
    r = client.patch(f"{API}/admin/showings/{showing_id}", json={"status": "COMPLETED"}, headers=admin_headers)
    assert r.json()["status"] == "COMPLETED"
    r = client.patch(f"{API}/admin/showings/{showing_id}", json={"status": "PENDING"}, headers=admin_headers)
    assert r.status_code == 409


def test_blocked_dates(client, admin_headers):
    r = client.post(f"{API}/admin/blocked-dates", json={"date": MONDAY, "reason": "Holiday"}, headers=admin_headers)
    blocked_id = r.json()["id"]
    # re-blocking replaces the reason
    r = client.post(f"{API}/admin/blocked-dates", json={"date": MONDAY, "reason": "Repairs"}, headers=admin_headers)
    assert r.json()["id"] == blocked_id

    avail = client.get(f"{API}/public/availability", params={"date": MONDAY}).json()
    assert avail == {"date": MONDAY, "status": "blocked", "reason": "Repairs"}

    r = client.post(f"{API}/public/bookings/event",
                    json=event_payload(eventDate=MONDAY, startTime="10:00", endTime="12:00"))
    assert r.status_code == 409

    items = client.get(f"{API}/admin/blocked-dates", params={"start": FRIDAY, "end": THURSDAY},
                       headers=admin_headers).json()["items"]
    assert [i["date"] for i in items] == [MONDAY]

    assert client.delete(f"{API}/admin/blocked-dates/{blocked_id}", headers=admin_headers).status_code == 200
    assert client.delete(f"{API}/admin/blocked-dates/{blocked_id}", headers=admin_headers).status_code == 404


def test_addon_catalog(client, admin_headers):
    r = client.post(f"{API}/admin/addons", json={"name": "Whicker Chair", "priceCents": 2500, "sortOrder": 1},
                    headers=admin_headers)
    addon_id = r.json()["id"]

    r = client.patch(f"{API}/admin/addons/{addon_id}", json={"priceCents": 3000}, headers=admin_headers)
    assert r.json()["priceCents"] == 3000
    assert r.json()["name"] == "Whicker Chair"

    assert client.post(f"{API}/admin/addons", json={"name": "Bad", "priceCents": -1},
                       headers=admin_headers).status_code == 400

    client.post(f"{API}/public/bookings/event",
                json=event_payload(addOns=[{"addOnId": addon_id, "quantity": 1}]))
    r = client.delete(f"{API}/admin/addons/{addon_id}", headers=admin_headers)
    assert r.status_code == 409

    r = client.patch(f"{API}/admin/addons/{addon_id}", json={"active": False}, headers=admin_headers)
    assert r.json()["active"] is False
    assert client.get(f"{API}/public/addons").json()["items"] == []


def test_showing_availability_settings(client, admin_headers):
    r = client.post(f"{API}/admin/showing-availability", headers=admin_headers, json={
        "availability": [{"dayOfWeek": 1, "startTime": "09:00", "endTime": "12:00"}],
        "config": {"defaultDurationMinutes": 60, "maxSlotsPerWindow": 999},
    })
    assert r.status_code == 200
    assert r.json()["config"]["defaultDurationMinutes"] == 60

    slots = client.get(f"{API}/public/showing-slots", params={"date": MONDAY}).json()["slots"]
    assert [s["time"] for s in slots] == ["09:00", "10:00", "11:00"]

    r = client.post(f"{API}/admin/showing-availability", headers=admin_headers, json={
        "availability": [{"dayOfWeek": 7, "startTime": "09:00", "endTime": "12:00"}],
    })
    assert r.status_code == 400
    r = client.post(f"{API}/admin/showing-availability", headers=admin_headers, json={
        "availability": [{"dayOfWeek": 1, "startTime": "12:00", "endTime": "09:00"}],
    })
    assert r.status_code == 400


def test_calendar_lists_bookings_and_blocks(client, admin_headers):
    client.post(f"{API}/public/bookings/event", json=event_payload())
    client.post(f"{API}/admin/blocked-dates", json={"date": MONDAY}, headers=admin_headers)
    r = client.get(f"{API}/admin/calendar", params={"start": FRIDAY, "end": THURSDAY}, headers=admin_headers)
    body = r.json()
    assert len(body["bookings"]) == 1
    assert body["bookings"][0]["managementToken"]
    assert [d["date"] for d in body["blockedDates"]] == [MONDAY]
