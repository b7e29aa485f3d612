"""
Owner endpoints over HTTP: auth, profile, catalog, appointments, dashboard.
"""

from datetime import date, datetime, timedelta, timezone

import jwt
import pytest

from bookly.core.config import get_settings
from bookly.dashboard import local_now
from bookly.models import AppointmentStatus

from conftest import add_appointment, add_service, make_token

MONDAY = date(2025, 3, 10)


def booking_body(service_id, day="2025-03-10", time="10:00", phone="+15551234567"):
    return {
        "customerName": "Ada Lovelace",
        "customerPhone": phone,
        "serviceId": service_id,
        "date": day,
        "time": time,
    }


# ────────────────────────────────────────────────────────────────
# Authentication
# ────────────────────────────────────────────────────────────────

class TestOwnerAuth:
    @pytest.mark.asyncio
    async def test_missing_token(self, client, business):
        response = await client.get("/owner/profile")
        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_bad_signature(self, client, business):
        token = jwt.encode(
            {"business_id": business.id}, "some-other-secret-0123456789abcdef", algorithm="HS256"
        )
        response = await client.get("/owner/profile", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_expired_token(self, client, business):
        expired = datetime.now(timezone.utc) - timedelta(minutes=5)
        token = make_token(business.id, exp=expired)
        response = await client.get("/owner/profile", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_unknown_business(self, client, business):
        response = await client.get(
            "/owner/profile", headers={"Authorization": f"Bearer {make_token(9999)}"}
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_sub_claim_only(self, client, business):
        settings = get_settings()
        token = jwt.encode({"sub": str(business.id)}, settings.jwt_secret, algorithm="HS256")
        response = await client.get("/owner/profile", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200
        assert response.json()["slug"] == business.slug


# ────────────────────────────────────────────────────────────────
# Profile
# ────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_get_profile(client, business, owner_headers):
    response = await client.get("/owner/profile", headers=owner_headers)

    assert response.status_code == 200
    assert response.json()["businessName"] == "Bella Salon"


@pytest.mark.asyncio
async def test_update_profile_slug(client, business, other_business, owner_headers):
    response = await client.put(
        "/owner/profile", json={"slug": "bella-uptown"}, headers=owner_headers
    )
    assert response.status_code == 200
    assert response.json()["slug"] == "bella-uptown"

    taken = await client.put(
        "/owner/profile", json={"slug": other_business.slug}, headers=owner_headers
    )
    assert taken.status_code == 409
    assert taken.json()["error"]["code"] == "ALREADY_EXISTS"


# ────────────────────────────────────────────────────────────────
# Services
# ────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_service_endpoints(client, business, owner_headers):
    created = await client.post(
        "/owner/services",
        json={"name": "Color", "durationMinutes": 90, "priceCents": 8000},
        headers=owner_headers,
    )
    assert created.status_code == 201
    service_id = created.json()["id"]

    duplicate = await client.post(
        "/owner/services",
        json={"name": "Color", "durationMinutes": 30, "priceCents": 100},
        headers=owner_headers,
    )
    assert duplicate.status_code == 409

    updated = await client.put(
        f"/owner/services/{service_id}", json={"priceCents": 9000}, headers=owner_headers
    )
    assert updated.json()["priceDisplay"] == "$90.00"

    listed = await client.get("/owner/services", headers=owner_headers)
    assert [s["name"] for s in listed.json()] == ["Color"]

    deleted = await client.delete(f"/owner/services/{service_id}", headers=owner_headers)
    assert deleted.status_code == 200

    missing = await client.delete(f"/owner/services/{service_id}", headers=owner_headers)
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_deleted_service_leaves_appointments(client, async_session, business, owner_headers):
    service = await add_service(async_session, business, name="Retired")
    await add_appointment(async_session, business, service, MONDAY, "10:00")

    await client.delete(f"/owner/services/{service.id}", headers=owner_headers)
    response = await client.get("/owner/appointments", headers=owner_headers)

    [appointment] = response.json()
    assert appointment["serviceId"] == service.id
    assert appointment["serviceName"] is None


@pytest.mark.asyncio
async def test_new_service_does_not_inherit_deleted_id(client, async_session, business, owner_headers):
    service = await add_service(async_session, business, name="Old Cut", price_cents=2000)
    await add_appointment(
        async_session, business, service, MONDAY, "10:00", status=AppointmentStatus.COMPLETED
    )

    await client.delete(f"/owner/services/{service.id}", headers=owner_headers)
    created = await client.post(
        "/owner/services",
        json={"name": "Brand New", "durationMinutes": 30, "priceCents": 9900},
        headers=owner_headers,
    )
    assert created.json()["id"] != service.id

    [listed] = (await client.get("/owner/appointments", headers=owner_headers)).json()
    assert listed["serviceId"] == service.id
    assert listed["serviceName"] is None

    stats = (await client.get("/owner/dashboard/stats", headers=owner_headers)).json()
    assert stats["revenueCents"] == 0


# ────────────────────────────────────────────────────────────────
# Appointments
# ────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_owner_creates_appointment(client, business, service, owner_headers):
    response = await client.post(
        "/owner/appointments", json=booking_body(service.id), headers=owner_headers
    )
    assert response.status_code == 201
    assert response.json()["status"] == "Pending"

    conflict = await client.post(
        "/owner/appointments",
        json=booking_body(service.id, time="10:30", phone="+15550000000"),
        headers=owner_headers,
    )
    assert conflict.status_code == 409
    assert conflict.json()["error"]["code"] == "CONFLICT"


@pytest.mark.asyncio
async def test_list_appointments_filters(client, async_session, business, service, owner_headers):
    await add_appointment(async_session, business, service, MONDAY, "13:00", status=AppointmentStatus.PENDING)
    await add_appointment(async_session, business, service, MONDAY, "10:00", status=AppointmentStatus.CONFIRMED)
    await add_appointment(async_session, business, service, date(2025, 3, 11), "10:00")

    everything = await client.get("/owner/appointments", headers=owner_headers)
    assert [(a["date"], a["time"]) for a in everything.json()] == [
        ("2025-03-10", "10:00"),
        ("2025-03-10", "13:00"),
        ("2025-03-11", "10:00"),
    ]

    pending = await client.get(
        "/owner/appointments", params={"status": "Pending"}, headers=owner_headers
    )
    assert [a["time"] for a in pending.json()] == ["13:00"]

    tuesday = await client.get(
        "/owner/appointments", params={"date": "2025-03-11"}, headers=owner_headers
    )
    assert len(tuesday.json()) == 1

    bad = await client.get(
        "/owner/appointments", params={"status": "Cancelled"}, headers=owner_headers
    )
    assert bad.status_code == 422


@pytest.mark.asyncio
async def test_status_transitions(client, async_session, business, service, owner_headers):
    appointment = await add_appointment(
        async_session, business, service, MONDAY, "10:00", status=AppointmentStatus.PENDING
    )
    url = f"/owner/appointments/{appointment.id}/status"

    rejected = await client.patch(url, json={"status": "Rejected"}, headers=owner_headers)
    assert rejected.status_code == 200
    assert rejected.json()["status"] == "Rejected"

    revived = await client.patch(url, json={"status": "Confirmed"}, headers=owner_headers)
    assert revived.status_code == 409
    body = revived.json()
    assert body["error"]["code"] == "INVALID_TRANSITION"
    assert body["error"]["details"]["from"] == "Rejected"

    listed = await client.get("/owner/appointments", headers=owner_headers)
    assert listed.json()[0]["status"] == "Rejected"


@pytest.mark.asyncio
async def test_unknown_status_value(client, async_session, business, service, owner_headers):
    appointment = await add_appointment(async_session, business, service, MONDAY, "10:00")

    response = await client.patch(
        f"/owner/appointments/{appointment.id}/status",
        json={"status": "Cancelled"},
        headers=owner_headers,
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_reschedule_endpoint(client, async_session, business, service, owner_headers):
    appointment = await add_appointment(async_session, business, service, MONDAY, "10:00")
    await add_appointment(async_session, business, service, MONDAY, "14:00", phone="+15550000003")

    moved = await client.put(
        f"/owner/appointments/{appointment.id}",
        json={"time": "11:00", "notes": "Moved by phone"},
        headers=owner_headers,
    )
    assert moved.status_code == 200
    assert moved.json()["time"] == "11:00"
    assert moved.json()["notes"] == "Moved by phone"

    clash = await client.put(
        f"/owner/appointments/{appointment.id}", json={"time": "13:30"}, headers=owner_headers
    )
    assert clash.status_code == 409


@pytest.mark.asyncio
async def test_delete_appointment(client, async_session, business, service, owner_headers):
    appointment = await add_appointment(async_session, business, service, MONDAY, "10:00")

    response = await client.delete(f"/owner/appointments/{appointment.id}", headers=owner_headers)
    assert response.status_code == 200

    listed = await client.get("/owner/appointments", headers=owner_headers)
    assert listed.json() == []


@pytest.mark.asyncio
async def test_customers_listing(client, business, service, owner_headers):
    await client.post(f"/businesses/{business.slug}/book", json=booking_body(service.id, time="09:00"))
    await client.post(f"/businesses/{business.slug}/book", json=booking_body(service.id, time="11:00"))
    await client.post(
        f"/businesses/{business.slug}/book",
        json=booking_body(service.id, time="13:00", phone="+15557654321"),
    )

    response = await client.get("/owner/customers", headers=owner_headers)

    assert response.status_code == 200
    assert sorted(c["phone"] for c in response.json()) == ["+15551234567", "+15557654321"]


# ────────────────────────────────────────────────────────────────
# Dashboard
# ────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_dashboard_stats(client, async_session, business, service, owner_headers):
    today = local_now().date()
    cheap = await add_service(async_session, business, name="Trim", duration_minutes=30, price_cents=1500)

    await add_appointment(async_session, business, service, today, "09:00", status=AppointmentStatus.COMPLETED)
    await add_appointment(
        async_session, business, cheap, today, "11:00",
        status=AppointmentStatus.COMPLETED, phone="+15550000002",
    )
    await add_appointment(
        async_session, business, service, today - timedelta(days=400), "10:00",
        status=AppointmentStatus.CONFIRMED, phone="+15550000003",
    )

    response = await client.get("/owner/dashboard/stats", headers=owner_headers)

    assert response.status_code == 200
    stats = response.json()
    assert stats["totalAppointments"] == 3
    assert stats["todayAppointments"] == 2
    assert stats["revenueCents"] == 5000
    assert stats["newCustomers"] == 3
    assert [a["time"] for a in stats["todaySchedule"]] == ["09:00", "11:00"]


@pytest.mark.asyncio
async def test_dashboard_ignores_deleted_service_revenue(
    client, async_session, business, service, owner_headers
):
    today = local_now().date()
    await add_appointment(async_session, business, service, today, "09:00", status=AppointmentStatus.COMPLETED)

    await client.delete(f"/owner/services/{service.id}", headers=owner_headers)
    stats = (await client.get("/owner/dashboard/stats", headers=owner_headers)).json()

    assert stats["revenueCents"] == 0
    assert stats["totalAppointments"] == 1


# ────────────────────────────────────────────────────────────────
# Tenant isolation
# ────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_other_owner_cannot_touch_appointments(
    client, async_session, business, service, other_owner_headers
):
    appointment = await add_appointment(async_session, business, service, MONDAY, "10:00")

    listed = await client.get("/owner/appointments", headers=other_owner_headers)
    assert listed.json() == []

    patched = await client.patch(
        f"/owner/appointments/{appointment.id}/status",
        json={"status": "Confirmed"},
        headers=other_owner_headers,
    )
    assert patched.status_code == 404

    deleted = await client.delete(
        f"/owner/appointments/{appointment.id}", headers=other_owner_headers
    )
    assert deleted.status_code == 404


@pytest.mark.asyncio
async def test_other_owner_cannot_edit_services(client, business, service, other_owner_headers):
    response = await client.put(
        f"/owner/services/{service.id}", json={"priceCents": 1}, headers=other_owner_headers
    )
    assert response.status_code == 404

    listed = await client.get("/owner/services", headers=other_owner_headers)
    assert listed.json() == []
