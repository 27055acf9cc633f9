"""
Integration tests for admin shipment management.

Create -> List -> Get -> Update -> Delete through the HTTP API.
"""

import pytest
from sqlalchemy import select, func

from tracking_backend.app.models.shipment_timeline import ShipmentTimeline
from tracking_backend.app.services.audit import get_shipment_audit_trail, AuditAction


async def _create(client, auth_headers, payload):
    response = await client.post("/v1/admin/shipments", json=payload, headers=auth_headers)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_create_shipment(client, auth_headers, shipment_payload):
    data = await _create(client, auth_headers, shipment_payload)

    shipment = data["shipment"]
    assert shipment["tracking_id"].startswith("TRK")
    assert shipment["status"] == "Processing"
    assert shipment["sender_city"] == "Tokyo"
    assert data["timeline_action"] == "inserted"
    assert data["warnings"] == []
    assert len(data["timeline"]) == 1
    assert data["timeline"][0]["location"] == "Tokyo Sorting Center"


@pytest.mark.asyncio
async def test_create_ignores_client_status(client, auth_headers, shipment_payload):
    shipment_payload["status"] = "Delivered"

    data = await _create(client, auth_headers, shipment_payload)

    assert data["shipment"]["status"] == "Processing"


@pytest.mark.asyncio
async def test_create_missing_fields(client, auth_headers, shipment_payload):
    del shipment_payload["receiver_phone"]
    shipment_payload["package_type"] = "   "

    response = await client.post("/v1/admin/shipments", json=shipment_payload, headers=auth_headers)

    assert response.status_code == 422
    data = response.json()
    assert data["error_code"] == "ERR_VALIDATION_002"
    assert "Receiver phone is required" in data["details"]["errors"]
    assert "Package type is required" in data["details"]["errors"]

    listing = await client.get("/v1/admin/shipments", headers=auth_headers)
    assert listing.json()["total"] == 0


@pytest.mark.asyncio
async def test_requires_authentication(client, shipment_payload):
    response = await client.post("/v1/admin/shipments", json=shipment_payload)
    assert response.status_code in (401, 403)

    response = await client.get(
        "/v1/admin/shipments",
        headers={"Authorization": "Bearer not-a-jwt"}
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_list_filter_and_search(client, auth_headers, shipment_payload):
    first = await _create(client, auth_headers, shipment_payload)
    other = dict(shipment_payload, receiver_name="Bob Marley", sender_name="Yuki Tanaka")
    await _create(client, auth_headers, other)
    await client.patch(
        f"/v1/admin/shipments/{first['shipment']['id']}",
        json={"status": "In Transit"},
        headers=auth_headers
    )

    response = await client.get("/v1/admin/shipments", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert data["page"] == 1

    response = await client.get("/v1/admin/shipments", params={"search": "alice"}, headers=auth_headers)
    data = response.json()
    assert data["total"] == 1
    assert data["shipments"][0]["receiver_name"] == "Alice Walker"

    response = await client.get("/v1/admin/shipments", params={"status": "In Transit"}, headers=auth_headers)
    data = response.json()
    assert data["total"] == 1
    assert data["shipments"][0]["id"] == first["shipment"]["id"]

    code = first["shipment"]["tracking_id"]
    response = await client.get("/v1/admin/shipments", params={"search": code.lower()}, headers=auth_headers)
    assert response.json()["total"] == 1

    # Wildcards in the search text match literally
    response = await client.get("/v1/admin/shipments", params={"search": "TRK_"}, headers=auth_headers)
    assert response.json()["total"] == 0
    response = await client.get("/v1/admin/shipments", params={"search": "%"}, headers=auth_headers)
    assert response.json()["total"] == 0

    response = await client.get("/v1/admin/shipments", params={"page_size": 1, "page": 2}, headers=auth_headers)
    data = response.json()
    assert data["total"] == 2
    assert len(data["shipments"]) == 1


@pytest.mark.asyncio
async def test_get_by_id_or_tracking_code(client, auth_headers, shipment_payload):
    created = await _create(client, auth_headers, shipment_payload)
    shipment_id = created["shipment"]["id"]
    tracking_id = created["shipment"]["tracking_id"]

    by_id = await client.get(f"/v1/admin/shipments/{shipment_id}", headers=auth_headers)
    by_code = await client.get(f"/v1/admin/shipments/{tracking_id}", headers=auth_headers)

    assert by_id.status_code == 200
    assert by_code.status_code == 200
    assert by_id.json()["shipment"]["id"] == by_code.json()["shipment"]["id"] == shipment_id
    assert len(by_code.json()["timeline"]) == 1

    missing = await client.get("/v1/admin/shipments/TRK000000000", headers=auth_headers)
    assert missing.status_code == 404
    assert missing.json()["error_code"] == "ERR_NOT_FOUND_001"


@pytest.mark.asyncio
async def test_update_status_and_fields(client, auth_headers, shipment_payload):
    created = await _create(client, auth_headers, shipment_payload)
    tracking_id = created["shipment"]["tracking_id"]

    response = await client.patch(
        f"/v1/admin/shipments/{tracking_id}",
        json={"status": "Picked Up", "notes": "Courier #12", "clearance_status": "Pending"},
        headers=auth_headers
    )

    assert response.status_code == 200
    data = response.json()
    assert data["shipment"]["status"] == "Picked Up"
    assert data["shipment"]["clearance_status"] == "Pending"
    assert data["timeline_action"] == "inserted"
    newest = data["timeline"][0]
    assert newest["status"] == "Picked Up"
    assert newest["location"] == "Tokyo Sorting Center"
    assert newest["notes"] == "Courier #12"
    assert [e["status"] for e in data["timeline"]] == ["Picked Up", "Processing"]

    # Same status again without overrides: nothing written
    response = await client.patch(
        f"/v1/admin/shipments/{tracking_id}",
        json={"status": "Picked Up"},
        headers=auth_headers
    )
    assert response.json()["timeline_action"] == "unchanged"
    assert len(response.json()["timeline"]) == 2


@pytest.mark.asyncio
async def test_update_rejects_bad_input(client, auth_headers, shipment_payload):
    created = await _create(client, auth_headers, shipment_payload)
    shipment_id = created["shipment"]["id"]

    response = await client.patch(
        f"/v1/admin/shipments/{shipment_id}",
        json={"status": "Lost"},
        headers=auth_headers
    )
    assert response.status_code == 422
    assert response.json()["error_code"] == "ERR_VALIDATION"

    response = await client.patch(
        f"/v1/admin/shipments/{shipment_id}",
        json={"receiver_name": None},
        headers=auth_headers
    )
    assert response.status_code == 422
    assert "Field 'receiver_name' cannot be empty" in response.json()["details"]["errors"]

    response = await client.patch(
        f"/v1/admin/shipments/{shipment_id}",
        json={"sender_city": "   "},
        headers=auth_headers
    )
    assert response.status_code == 422
    assert "Field 'sender_city' cannot be empty" in response.json()["details"]["errors"]

    response = await client.patch(
        "/v1/admin/shipments/TRK000000000",
        json={"status": "Delivered"},
        headers=auth_headers
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_cascades_timeline(client, auth_headers, shipment_payload, db_session):
    created = await _create(client, auth_headers, shipment_payload)
    shipment_id = created["shipment"]["id"]
    await client.patch(
        f"/v1/admin/shipments/{shipment_id}",
        json={"status": "In Transit"},
        headers=auth_headers
    )

    response = await client.delete(f"/v1/admin/shipments/{shipment_id}", headers=auth_headers)
    assert response.status_code == 204

    remaining = await db_session.scalar(
        select(func.count(ShipmentTimeline.id)).where(ShipmentTimeline.shipment_id == shipment_id)
    )
    assert remaining == 0

    response = await client.get(f"/v1/admin/shipments/{shipment_id}", headers=auth_headers)
    assert response.status_code == 404

    response = await client.delete(f"/v1/admin/shipments/{shipment_id}", headers=auth_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_stats(client, auth_headers, shipment_payload):
    first = await _create(client, auth_headers, shipment_payload)
    await _create(client, auth_headers, shipment_payload)
    await client.patch(
        f"/v1/admin/shipments/{first['shipment']['id']}",
        json={"status": "Delivered"},
        headers=auth_headers
    )

    response = await client.get("/v1/admin/shipments/stats", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert data["by_status"] == {
        "Processing": 1,
        "Picked Up": 0,
        "In Transit": 0,
        "At Destination": 0,
        "Delivered": 1,
    }


@pytest.mark.asyncio
async def test_mutations_are_audited(client, auth_headers, shipment_payload, db_session, admin_user):
    created = await _create(client, auth_headers, shipment_payload)
    shipment_id = created["shipment"]["id"]
    await client.patch(
        f"/v1/admin/shipments/{shipment_id}",
        json={"status": "Picked Up", "weight_kg": 2.5},
        headers=auth_headers
    )
    await client.delete(f"/v1/admin/shipments/{shipment_id}", headers=auth_headers)

    trail = await get_shipment_audit_trail(db_session, shipment_id)

    assert [e.action for e in trail] == [
        AuditAction.SHIPMENT_DELETED,
        AuditAction.SHIPMENT_UPDATED,
        AuditAction.SHIPMENT_CREATED,
    ]
    assert all(e.actor_id == admin_user.id for e in trail)
    updated = trail[1]
    assert updated.meta_data["status"] == "Picked Up"
    assert updated.meta_data["updated_fields"] == ["weight_kg"]
    assert updated.meta_data["timeline_action"] == "inserted"


@pytest.mark.asyncio
async def test_audit_trail_endpoint(client, auth_headers, shipment_payload):
    created = await _create(client, auth_headers, shipment_payload)
    tracking_id = created["shipment"]["tracking_id"]
    await client.patch(
        f"/v1/admin/shipments/{tracking_id}",
        json={"status": "In Transit"},
        headers=auth_headers
    )

    response = await client.get(f"/v1/admin/shipments/{tracking_id}/audit", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["shipment_id"] == created["shipment"]["id"]
    assert [e["action"] for e in data["events"]] == [
        AuditAction.SHIPMENT_UPDATED,
        AuditAction.SHIPMENT_CREATED,
    ]
    assert data["events"][0]["actor_username"] == "admin"
    assert data["events"][0]["meta_data"]["status"] == "In Transit"

    response = await client.get(f"/v1/admin/shipments/{tracking_id}/audit", params={"limit": 1}, headers=auth_headers)
    assert len(response.json()["events"]) == 1

    response = await client.get("/v1/admin/shipments/TRK000000000/audit", headers=auth_headers)
    assert response.status_code == 404
