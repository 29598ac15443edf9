"""Shared test configuration and fixtures.

Key principles:
- All HTTP calls go through the local ASGI app (httpx + ASGITransport).
- Every test gets its own database with the production indexes applied:
  in-memory (mongomock-motor) by default, a throwaway database on
  TEST_MONGO_URL when that is set.
- AnyIO is the single async runner (@pytest.mark.anyio).
"""

from typing import Any, AsyncGenerator, Dict

import os
import sys
import uuid
from pathlib import Path

import httpx
import pytest
from httpx import ASGITransport
from mongomock_motor import AsyncMongoMockClient
from motor.motor_asyncio import AsyncIOMotorClient

# Ensure backend root is on sys.path so that `server` module is importable
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from server import app  # noqa: E402
from rate_engine.auth import create_access_token  # noqa: E402
from rate_engine.db import get_db  # noqa: E402
from rate_engine.indexes.rate_indexes import ensure_rate_indexes  # noqa: E402
from rate_engine.repositories.offering_repository import OfferingRepository  # noqa: E402


# Run against a real MongoDB when set; in-memory otherwise.
TEST_MONGO_URL = os.environ.get("TEST_MONGO_URL")

TENANT_ID = "tenant_a"
OTHER_TENANT_ID = "tenant_b"


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Force pytest-anyio to use asyncio event loop."""

    return "asyncio"


@pytest.fixture(scope="function")
async def test_db() -> AsyncGenerator[Any, None]:
    """Function-scoped isolated database for each test."""

    db_name = f"rate_engine_test_{uuid.uuid4().hex}"
    if not TEST_MONGO_URL:
        db = AsyncMongoMockClient()[db_name]
        await ensure_rate_indexes(db)
        yield db
        return

    client = AsyncIOMotorClient(TEST_MONGO_URL, tz_aware=True)
    try:
        db = client[db_name]
        await ensure_rate_indexes(db)
        yield db
        await client.drop_database(db_name)
    finally:
        client.close()


@pytest.fixture(scope="function")
async def app_with_overrides(test_db) -> AsyncGenerator[Any, None]:
    """FastAPI app instance whose get_db dependency points to test_db."""

    async def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield app
    finally:
        app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def async_client(app_with_overrides) -> AsyncGenerator[httpx.AsyncClient, None]:
    transport = ASGITransport(app=app_with_overrides)
    async with httpx.AsyncClient(transport=transport, base_url="http://test", timeout=30.0) as client:
        yield client


def _headers(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers() -> Dict[str, str]:
    token = create_access_token(subject="admin@rates.test", tenant_id=TENANT_ID, roles=["admin"])
    return _headers(token)


@pytest.fixture
def agent_headers() -> Dict[str, str]:
    """Read-only sales agent of the same tenant (may quote, may not edit rates)."""

    token = create_access_token(subject="agent@rates.test", tenant_id=TENANT_ID, roles=["agent"])
    return _headers(token)


@pytest.fixture
def other_tenant_headers() -> Dict[str, str]:
    token = create_access_token(subject="admin@other.test", tenant_id=OTHER_TENANT_ID, roles=["admin"])
    return _headers(token)


# ---------------------------------------------------------------------------
# Catalog seeds
# ---------------------------------------------------------------------------


@pytest.fixture
async def hotel_offering(test_db):
    return await OfferingRepository(test_db).create_offering(
        TENANT_ID,
        {
            "service_type": "HOTEL_ROOM",
            "title": "Sea View Double",
            "supplier_name": "Antalya Resort",
            "hotel_room": {"hotel_name": "Antalya Resort", "room_type": "DBL", "max_occupancy": 4},
        },
    )


@pytest.fixture
async def transfer_offering(test_db):
    return await OfferingRepository(test_db).create_offering(
        TENANT_ID,
        {
            "service_type": "TRANSFER",
            "title": "Airport - Old Town",
            "supplier_name": "Blue Transfers",
            "transfer": {
                "origin_zone": "AYT",
                "dest_zone": "KALEICI",
                "transfer_type": "PRIVATE",
                "vehicle_class": "VAN",
                "max_passengers": 4,
            },
        },
    )


@pytest.fixture
async def vehicle_offering(test_db):
    return await OfferingRepository(test_db).create_offering(
        TENANT_ID,
        {
            "service_type": "VEHICLE_HIRE",
            "title": "Sprinter with driver",
            "supplier_name": "Road Co",
            "vehicle": {
                "make": "Mercedes",
                "model": "Sprinter",
                "vehicle_class": "MINIBUS",
                "with_driver": True,
                "max_passengers": 8,
            },
        },
    )


@pytest.fixture
async def guide_offering(test_db):
    return await OfferingRepository(test_db).create_offering(
        TENANT_ID,
        {
            "service_type": "GUIDE_SERVICE",
            "title": "Licensed guide",
            "supplier_name": "Guides Guild",
            "guide": {"guide_name": "Ayse", "languages": ["EN", "DE"]},
        },
    )


@pytest.fixture
async def activity_offering(test_db):
    return await OfferingRepository(test_db).create_offering(
        TENANT_ID,
        {
            "service_type": "ACTIVITY",
            "title": "Boat tour",
            "supplier_name": "Sea Tours",
            "activity": {
                "operator_name": "Sea Tours",
                "activity_type": "BOAT",
                "duration_minutes": 360,
                "min_participants": 2,
                "max_participants": 10,
            },
        },
    )
