"""
Tests for the guest HTTP endpoints: status codes, cascade reports and
tenant checks as seen by API callers.
"""

from decimal import Decimal

import pytest
from httpx import AsyncClient

from planner.core.config import get_settings
from tests.conftest import CLIENT_ID, DELETED_CLIENT_ID, OTHER_CLIENT_ID

JANE = {
    "name": "Jane Doe",
    "party_size": 2,
    "hotel_required": True,
    "hotel_name": "Grand Hotel",
    "hotel_check_in": "2026-06-01",
    "hotel_check_out": "2026-06-03",
}


async def create_jane(client: AsyncClient, headers: dict, **overrides) -> dict:
    response = await client.post(
        f"/api/v1/clients/{CLIENT_ID}/guests", json={**JANE, **overrides}, headers=headers
    )
    assert response.status_code == 201
    return response.json()


@pytest.mark.asyncio
async def test_create_guest(client: AsyncClient, tenant_headers, tenants):
    """Create returns the guest and the hotel record the cascade made."""
    data = await create_jane(client, tenant_headers)

    assert data["guest"]["first_name"] == "Jane"
    assert data["guest"]["last_name"] == "Doe"
    assert data["guest"]["hotel_check_in"] == "2026-06-01"
    assert data["cascade"] == [{"module": "hotel", "action": "created", "count": 1}]

    response = await client.get(f"/api/v1/guests/{data['guest']['id']}/hotels", headers=tenant_headers)
    assert response.status_code == 200
    [row] = response.json()
    assert row["hotel_name"] == "Grand Hotel"
    assert row["primary_guest_id"] == data["guest"]["id"]


@pytest.mark.asyncio
async def test_create_guest_without_tenant(client: AsyncClient, tenants):
    response = await client.post(f"/api/v1/clients/{CLIENT_ID}/guests", json=JANE)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_create_guest_for_other_tenant(client: AsyncClient, tenant_headers, tenants):
    response = await client.post(
        f"/api/v1/clients/{OTHER_CLIENT_ID}/guests", json=JANE, headers=tenant_headers
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_create_guest_for_deleted_client(client: AsyncClient, tenant_headers, tenants):
    response = await client.post(
        f"/api/v1/clients/{DELETED_CLIENT_ID}/guests", json=JANE, headers=tenant_headers
    )
    assert response.status_code == 403


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"name": "   "},
        {"name": "Jane Doe", "party_size": 0},
        {"name": "Jane Doe", "rsvp_status": "maybe"},
        {"name": "Jane Doe", "transport_pickup_time": "25:00"},
        {"name": "Jane Doe", "email": "not-an-email"},
    ],
)
async def test_create_guest_invalid_input(client: AsyncClient, tenant_headers, tenants, payload):
    response = await client.post(
        f"/api/v1/clients/{CLIENT_ID}/guests", json=payload, headers=tenant_headers
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_get_guest(client: AsyncClient, tenant_headers, tenants):
    created = await create_jane(client, tenant_headers, metadata={"table": 4})

    response = await client.get(f"/api/v1/guests/{created['guest']['id']}", headers=tenant_headers)

    assert response.status_code == 200
    assert response.json()["metadata"] == {"table": 4}


@pytest.mark.asyncio
async def test_get_unknown_guest(client: AsyncClient, tenant_headers, tenants):
    response = await client.get("/api/v1/guests/missing", headers=tenant_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_patch_guest_toggles_hotel(client: AsyncClient, tenant_headers, tenants):
    created = await create_jane(client, tenant_headers)
    guest_id = created["guest"]["id"]

    response = await client.patch(
        f"/api/v1/guests/{guest_id}", json={"hotel_required": False}, headers=tenant_headers
    )

    assert response.status_code == 200
    assert response.json()["cascade"] == [{"module": "hotel", "action": "deleted", "count": 1}]
    hotels = await client.get(f"/api/v1/guests/{guest_id}/hotels", headers=tenant_headers)
    assert hotels.json() == []


@pytest.mark.asyncio
async def test_patch_guest_creates_transport(client: AsyncClient, tenant_headers, tenants):
    created = await create_jane(client, tenant_headers, hotel_required=False)
    guest_id = created["guest"]["id"]

    response = await client.patch(
        f"/api/v1/guests/{guest_id}",
        json={
            "arrival_datetime": "2026-06-01T14:30:00Z",
            "transport_required": True,
            "transport_type": "car",
            "arrival_mode": "flight",
        },
        headers=tenant_headers,
    )

    assert response.status_code == 200
    assert response.json()["cascade"] == [{"module": "transport", "action": "created", "count": 1}]
    transport = await client.get(f"/api/v1/guests/{guest_id}/transport", headers=tenant_headers)
    [row] = transport.json()
    assert row["pickup_date"] == "2026-06-01"
    assert row["pickup_time"] == "14:30"
    assert row["vehicle_info"] == "car (flight)"


@pytest.mark.asyncio
async def test_patch_rejects_null_for_required_field(client: AsyncClient, tenant_headers, tenants):
    created = await create_jane(client, tenant_headers)

    response = await client.patch(
        f"/api/v1/guests/{created['guest']['id']}", json={"party_size": None}, headers=tenant_headers
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_patch_from_other_tenant(client: AsyncClient, tenant_headers, tenants):
    created = await create_jane(client, tenant_headers)
    guest_id = created["guest"]["id"]

    response = await client.patch(
        f"/api/v1/guests/{guest_id}",
        json={"hotel_required": False},
        headers={"X-Tenant-ID": "t2"},
    )

    assert response.status_code == 403
    hotels = await client.get(f"/api/v1/guests/{guest_id}/hotels", headers=tenant_headers)
    assert len(hotels.json()) == 1


@pytest.mark.asyncio
async def test_patch_unknown_party_member(client: AsyncClient, tenant_headers, tenants):
    created = await create_jane(client, tenant_headers, additional_guest_names=["John Doe"])

    response = await client.patch(
        f"/api/v1/guests/{created['guest']['id']}",
        json={"party_member_hotel": [{"member_name": "Stranger"}]},
        headers=tenant_headers,
    )

    assert response.status_code == 422
    assert "Stranger" in response.json()["detail"]


@pytest.mark.asyncio
async def test_party_member_rows_listed_after_primary(client: AsyncClient, tenant_headers, tenants):
    created = await create_jane(client, tenant_headers, additional_guest_names=["John Doe"])
    guest_id = created["guest"]["id"]

    await client.patch(
        f"/api/v1/guests/{guest_id}",
        json={"party_member_hotel": [{"member_name": "John Doe", "check_out": "2026-06-02"}]},
        headers=tenant_headers,
    )

    rows = (await client.get(f"/api/v1/guests/{guest_id}/hotels", headers=tenant_headers)).json()
    assert [r["guest_name"] for r in rows] == ["Jane Doe", "John Doe"]
    assert rows[1]["check_out_date"] == "2026-06-02"


@pytest.mark.asyncio
async def test_rsvp_updates_budget(client: AsyncClient, tenant_headers, per_guest_item):
    created = await create_jane(client, tenant_headers, hotel_required=False)

    response = await client.patch(
        f"/api/v1/guests/{created['guest']['id']}/rsvp",
        json={"rsvp_status": "accepted"},
        headers=tenant_headers,
    )

    assert response.status_code == 200
    assert response.json()["guest"]["rsvp_status"] == "accepted"
    assert response.json()["cascade"] == [{"module": "budget", "action": "recalculated", "count": 1}]

    budget = await client.get(f"/api/v1/clients/{CLIENT_ID}/budget", headers=tenant_headers)
    per_plate = next(i for i in budget.json() if i["is_per_guest_item"])
    assert per_plate["guest_count"] == 1
    assert Decimal(per_plate["estimated_cost"]) == Decimal("50")


@pytest.mark.asyncio
async def test_check_in(client: AsyncClient, tenant_headers, tenants):
    created = await create_jane(client, tenant_headers)

    response = await client.patch(
        f"/api/v1/guests/{created['guest']['id']}/check-in", json={}, headers=tenant_headers
    )

    assert response.status_code == 200
    assert response.json()["guest"]["checked_in"] is True
    assert response.json()["guest"]["checked_in_at"] is not None


@pytest.mark.asyncio
async def test_delete_guest(client: AsyncClient, tenant_headers, tenants):
    created = await create_jane(client, tenant_headers, transport_required=True)
    guest_id = created["guest"]["id"]

    response = await client.delete(f"/api/v1/guests/{guest_id}", headers=tenant_headers)

    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert (await client.get(f"/api/v1/guests/{guest_id}", headers=tenant_headers)).status_code == 404


@pytest.mark.asyncio
async def test_bulk_create(client: AsyncClient, tenant_headers, per_guest_item):
    response = await client.post(
        f"/api/v1/clients/{CLIENT_ID}/guests/bulk",
        json=[
            {**JANE, "rsvp_status": "accepted"},
            {"name": "John Smith", "rsvp_status": "accepted"},
            {"first_name": "Ann"},
        ],
        headers=tenant_headers,
    )

    assert response.status_code == 201
    data = response.json()
    assert data["count"] == 3
    assert data["cascade"] == [
        {"module": "hotel", "action": "created", "count": 1},
        {"module": "budget", "action": "recalculated", "count": 1},
    ]


@pytest.mark.asyncio
async def test_list_guests_and_stats(client: AsyncClient, tenant_headers, tenants):
    await create_jane(client, tenant_headers, rsvp_status="accepted")
    await create_jane(client, tenant_headers, name="Ann Lee", hotel_required=False, rsvp_status="declined")
    await create_jane(client, tenant_headers, name="Bob Ray", hotel_required=False)

    listing = await client.get(f"/api/v1/clients/{CLIENT_ID}/guests", headers=tenant_headers)
    assert [g["first_name"] for g in listing.json()] == ["Ann", "Bob", "Jane"]

    stats = await client.get(f"/api/v1/clients/{CLIENT_ID}/guests/stats", headers=tenant_headers)
    assert stats.json() == {"total": 3, "attending": 1, "declined": 1, "pending": 1, "checked_in": 0}


@pytest.mark.asyncio
async def test_list_guests_other_tenant(client: AsyncClient, tenant_headers, tenants):
    response = await client.get(f"/api/v1/clients/{OTHER_CLIENT_ID}/guests", headers=tenant_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_reconcile_endpoint(client: AsyncClient, tenant_headers, per_guest_item):
    created = await create_jane(client, tenant_headers, rsvp_status="accepted")
    await client.delete(f"/api/v1/guests/{created['guest']['id']}", headers=tenant_headers)

    response = await client.post(f"/api/v1/clients/{CLIENT_ID}/budget/reconcile", headers=tenant_headers)

    assert response.status_code == 200
    assert response.json() == {"updated_item_count": 1}


@pytest.mark.asyncio
async def test_request_id_is_echoed(client: AsyncClient, tenant_headers, tenants):
    response = await client.get(
        f"/api/v1/clients/{CLIENT_ID}/guests",
        headers={**tenant_headers, "X-Request-ID": "req-123"},
    )
    assert response.headers["X-Request-ID"] == "req-123"


@pytest.mark.asyncio
async def test_health_and_metrics(client: AsyncClient):
    health = await client.get("/health")
    assert health.status_code == 200
    assert health.json()["cache"] == {"status": "disabled"}

    metrics = await client.get("/metrics")
    assert metrics.status_code == 200
    assert "guest_mutations_total" in metrics.text


@pytest.mark.asyncio
async def test_patch_with_dashboard_party_member_payload(client: AsyncClient, tenant_headers, tenants):
    """Single camelCase command objects, as the dashboard toggles send them."""
    created = await create_jane(client, tenant_headers, additional_guest_names=["John Doe"])
    guest_id = created["guest"]["id"]

    response = await client.patch(
        f"/api/v1/guests/{guest_id}",
        json={
            "name": "Jane Doe",
            "metadata": {"partyMembers": {"John Doe": {"hotel": True}}},
            "partyMemberHotel": {"memberName": "John Doe", "checkIn": "2026-06-01", "checkOut": "2026-06-03"},
        },
        headers=tenant_headers,
    )

    assert response.status_code == 200
    assert response.json()["cascade"] == [{"module": "hotel", "action": "created", "count": 1}]

    response = await client.patch(
        f"/api/v1/guests/{guest_id}",
        json={"partyMemberHotel": {"memberName": "John Doe", "remove": True}},
        headers=tenant_headers,
    )

    assert response.json()["cascade"] == [{"module": "hotel", "action": "deleted", "count": 1}]
    rows = (await client.get(f"/api/v1/guests/{guest_id}/hotels", headers=tenant_headers)).json()
    assert [r["guest_name"] for r in rows] == ["Jane Doe"]


@pytest.mark.asyncio
async def test_tenant_header_name_follows_settings(client: AsyncClient, tenants, monkeypatch):
    monkeypatch.setattr(get_settings(), "TENANT_HEADER", "X-Company-ID")

    response = await client.get(f"/api/v1/clients/{CLIENT_ID}/guests", headers={"X-Company-ID": "t1"})
    assert response.status_code == 200

    response = await client.get(f"/api/v1/clients/{CLIENT_ID}/guests", headers={"X-Tenant-ID": "t1"})
    assert response.status_code == 401
