"""
Public tracking endpoint tests.
"""

import pytest


async def _create(client, auth_headers, payload):
    response = await client.post("/v1/admin/shipments", json=payload, headers=auth_headers)
    assert response.status_code == 201, response.text
    return response.json()["shipment"]


@pytest.mark.asyncio
async def test_track_without_authentication(client, auth_headers, shipment_payload):
    shipment = await _create(client, auth_headers, shipment_payload)

    response = await client.get(f"/v1/track/{shipment['tracking_id']}")

    assert response.status_code == 200
    data = response.json()
    assert data["shipment"]["tracking_id"] == shipment["tracking_id"]
    assert data["shipment"]["status"] == "Processing"
    assert data["progress"]["completed_steps"] == 1
    assert data["progress"]["total_steps"] == 5
    assert data["progress"]["percentage"] == 20
    assert data["progress"]["is_complete"] is False
    assert data["estimated_delivery"] is not None
    assert len(data["timeline"]) == 1


@pytest.mark.asyncio
async def test_track_hides_contact_details(client, auth_headers, shipment_payload):
    shipment = await _create(client, auth_headers, shipment_payload)

    response = await client.get(f"/v1/track/{shipment['tracking_id']}")

    public = response.json()["shipment"]
    for hidden in ("id", "sender_phone", "sender_email", "sender_street", "receiver_phone", "receiver_street"):
        assert hidden not in public


@pytest.mark.asyncio
async def test_track_delivered_shipment(client, auth_headers, shipment_payload):
    shipment = await _create(client, auth_headers, shipment_payload)
    for status in ("Picked Up", "In Transit", "At Destination", "Delivered"):
        await client.patch(
            f"/v1/admin/shipments/{shipment['id']}",
            json={"status": status},
            headers=auth_headers
        )

    response = await client.get(f"/v1/track/{shipment['tracking_id']}")

    data = response.json()
    assert data["progress"]["is_complete"] is True
    assert data["progress"]["percentage"] == 100
    assert all(step["completed"] for step in data["progress"]["steps"])
    assert data["estimated_delivery"] is None
    assert [e["status"] for e in data["timeline"]] == [
        "Delivered", "At Destination", "In Transit", "Picked Up", "Processing"
    ]
    assert data["timeline"][0]["location"] == "5 Elm St, Boston, USA"


@pytest.mark.asyncio
async def test_track_unknown_code(client):
    response = await client.get("/v1/track/TRKNOPE00000")

    assert response.status_code == 404
    assert response.json()["error_code"] == "ERR_NOT_FOUND_001"


@pytest.mark.asyncio
async def test_track_does_not_accept_internal_id(client, auth_headers, shipment_payload):
    shipment = await _create(client, auth_headers, shipment_payload)

    response = await client.get(f"/v1/track/{shipment['id']}")

    assert response.status_code in (404, 422)


@pytest.mark.asyncio
async def test_health_and_root(client):
    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["checks"] == {"database": True, "redis": True}
    assert "X-Correlation-ID" in response.headers

    response = await client.get("/")
    assert response.status_code == 200
    assert response.json()["docs"] == "/docs"
