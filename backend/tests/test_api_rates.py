from __future__ import annotations

import pytest


HOTEL_OFFERING = {
    "service_type": "HOTEL_ROOM",
    "title": "Garden Room",
    "supplier_name": "Lara Hotel",
    "hotel_room": {"hotel_name": "Lara Hotel", "room_type": "DBL", "max_occupancy": 3},
}


async def _create_offering(client, headers, body=None):
    resp = await client.post("/api/offerings", json=body or HOTEL_OFFERING, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


async def _create_hotel_rate(client, headers, offering_id, **overrides):
    body = {
        "service_offering_id": offering_id,
        "season_from": "2025-04-01",
        "season_to": "2025-10-31",
        "board_type": "BB",
        "price_per_person_double": 120.0,
        "child_price_3_to_5": 40.0,
    }
    body.update(overrides)
    return await client.post("/api/rates/HOTEL_ROOM", json=body, headers=headers)


@pytest.mark.anyio
async def test_health(async_client):
    resp = await async_client.get("/api/health")

    assert resp.status_code == 200
    assert resp.json()["service"] == "rate-engine"


@pytest.mark.anyio
async def test_requires_bearer_token(async_client):
    resp = await async_client.post("/api/pricing/quote", json={"service_offering_id": 1, "service_date": "2025-05-01"})

    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "unauthorized"


@pytest.mark.anyio
async def test_quote_flow_over_http(async_client, admin_headers, agent_headers):
    offering = await _create_offering(async_client, admin_headers)
    assert offering["hotel_room"]["max_occupancy"] == 3

    rate_resp = await _create_hotel_rate(async_client, admin_headers, offering["id"])
    assert rate_resp.status_code == 201, rate_resp.text
    rate = rate_resp.json()
    assert rate["service_type"] == "HOTEL_ROOM"
    assert rate["season_from"] == "2025-04-01"

    resp = await async_client.post(
        "/api/pricing/quote",
        json={
            "service_offering_id": offering["id"],
            "service_date": "2025-06-15",
            "pax": 3,
            "children": 1,
            "nights": 2,
        },
        headers=agent_headers,
    )

    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["service_date"] == "2025-06-15"
    assert data["pricing"]["rate_id"] == rate["id"]
    assert data["pricing"]["total_cost_try"] == 2 * 120 * 2 + 40 * 2


@pytest.mark.anyio
async def test_quote_errors_are_rendered(async_client, admin_headers):
    offering = await _create_offering(async_client, admin_headers)
    await _create_hotel_rate(async_client, admin_headers, offering["id"])

    too_many = await async_client.post(
        "/api/pricing/quote",
        json={"service_offering_id": offering["id"], "service_date": "2025-06-15", "pax": 4},
        headers={**admin_headers, "X-Correlation-Id": "cid-123"},
    )
    assert too_many.status_code == 400
    body = too_many.json()["error"]
    assert body["code"] == "capacity_exceeded"
    assert "exceeds room maximum capacity" in body["message"]
    assert body["details"]["correlation_id"] == "cid-123"
    assert too_many.headers["X-Correlation-Id"] == "cid-123"

    no_rate = await async_client.post(
        "/api/pricing/quote",
        json={"service_offering_id": offering["id"], "service_date": "2025-12-15"},
        headers=admin_headers,
    )
    assert no_rate.status_code == 404
    assert no_rate.json()["error"]["message"] == "No active rate found for the selected date"

    missing = await async_client.post(
        "/api/pricing/quote",
        json={"service_offering_id": 9999, "service_date": "2025-06-15"},
        headers=admin_headers,
    )
    assert missing.status_code == 404
    assert missing.json()["error"]["code"] == "service_offering_not_found"

    invalid = await async_client.post(
        "/api/pricing/quote",
        json={"service_offering_id": offering["id"], "service_date": "not-a-date"},
        headers=admin_headers,
    )
    assert invalid.status_code == 422
    assert invalid.json()["error"]["code"] == "validation_error"


@pytest.mark.anyio
async def test_offerings_are_tenant_scoped(async_client, admin_headers, other_tenant_headers):
    offering = await _create_offering(async_client, admin_headers)

    own = await async_client.get(f"/api/offerings/{offering['id']}", headers=admin_headers)
    other = await async_client.get(f"/api/offerings/{offering['id']}", headers=other_tenant_headers)

    assert own.status_code == 200
    assert other.status_code == 404


@pytest.mark.anyio
async def test_offering_requires_matching_attribute_block(async_client, admin_headers):
    resp = await async_client.post(
        "/api/offerings",
        json={"service_type": "TRANSFER", "title": "No block"},
        headers=admin_headers,
    )

    assert resp.status_code == 422


@pytest.mark.anyio
async def test_rate_writes_need_rate_manager_role(async_client, admin_headers, agent_headers):
    offering = await _create_offering(async_client, admin_headers)

    resp = await _create_hotel_rate(async_client, agent_headers, offering["id"])

    assert resp.status_code == 403


@pytest.mark.anyio
async def test_rate_crud_over_http(async_client, admin_headers):
    offering = await _create_offering(async_client, admin_headers)
    first = (await _create_hotel_rate(async_client, admin_headers, offering["id"])).json()

    overlap = await _create_hotel_rate(
        async_client, admin_headers, offering["id"], season_from="2025-10-01", season_to="2025-12-31"
    )
    assert overlap.status_code == 409
    assert overlap.json()["error"]["code"] == "rate_season_overlap"

    bad_type = await async_client.post("/api/rates/CRUISE", json={}, headers=admin_headers)
    assert bad_type.status_code == 400

    bad_body = await _create_hotel_rate(async_client, admin_headers, offering["id"], price_per_person_double=-1)
    assert bad_body.status_code == 422

    patched = await async_client.patch(
        f"/api/rates/{first['id']}",
        json={"season_to": "2025-09-30", "price_per_person_double": 125.0},
        headers=admin_headers,
    )
    assert patched.status_code == 200, patched.text
    assert patched.json()["season_to"] == "2025-09-30"
    assert patched.json()["price_per_person_double"] == 125.0

    second = await _create_hotel_rate(
        async_client, admin_headers, offering["id"], season_from="2025-10-01", season_to="2025-12-31"
    )
    assert second.status_code == 201

    listed = await async_client.get(
        "/api/rates", params={"service_offering_id": offering["id"]}, headers=admin_headers
    )
    assert [r["id"] for r in listed.json()["items"]] == [first["id"], second.json()["id"]]

    deleted = await async_client.delete(f"/api/rates/{first['id']}", headers=admin_headers)
    assert deleted.status_code == 200
    assert deleted.json()["is_active"] is False


@pytest.mark.anyio
async def test_exchange_rates_and_lock_over_http(async_client, admin_headers, test_db):
    created = await async_client.post(
        "/api/exchange-rates",
        json={"from_currency": "TRY", "to_currency": "EUR", "rate": 0.028, "rate_date": "2025-03-01"},
        headers=admin_headers,
    )
    assert created.status_code == 201, created.text

    dup = await async_client.post(
        "/api/exchange-rates",
        json={"rate": 0.029, "rate_date": "2025-03-01"},
        headers=admin_headers,
    )
    assert dup.status_code == 409

    imported = await async_client.post(
        "/api/exchange-rates/import",
        json={"csv_content": "TRY,EUR,0.03,2025-03-05"},
        headers=admin_headers,
    )
    assert imported.json()["summary"]["imported"] == 1

    latest = await async_client.get(
        "/api/exchange-rates/latest", params={"from": "TRY", "to": "EUR"}, headers=admin_headers
    )
    assert latest.status_code == 200
    assert latest.json()["rate"] == pytest.approx(0.03)

    listed = await async_client.get("/api/exchange-rates", headers=admin_headers)
    assert listed.json()["total"] == 2

    updated = await async_client.put(
        f"/api/exchange-rates/{created.json()['id']}", json={"rate": 0.0285}, headers=admin_headers
    )
    assert updated.status_code == 200
    assert updated.json()["rate"] == pytest.approx(0.0285)

    await test_db.bookings.insert_one({"_id": 77, "tenant_id": "tenant_a"})
    lock = await async_client.post("/api/bookings/77/exchange-lock", headers=admin_headers)
    assert lock.status_code == 200, lock.text
    assert lock.json()["locked_exchange_rate"] == pytest.approx(0.03)
    assert lock.json()["locked_currency_pair"] == "TRY/EUR"

    missing = await async_client.post("/api/bookings/78/exchange-lock", headers=admin_headers)
    assert missing.status_code == 404

    removed = await async_client.delete(f"/api/exchange-rates/{created.json()['id']}", headers=admin_headers)
    assert removed.status_code == 200
