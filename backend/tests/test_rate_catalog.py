from __future__ import annotations

from datetime import date

import pytest

from rate_engine.domain.offerings import ServiceType
from rate_engine.errors import AppError
from rate_engine.repositories.rate_repository import RateRepository, SeasonDayTaken
from rate_engine.services.rate_catalog import RateCatalogService

from conftest import TENANT_ID


def _hotel_payload(offering, start, end, board_type="BB", price=100.0):
    return {
        "service_offering_id": offering.id,
        "season_from": start,
        "season_to": end,
        "board_type": board_type,
        "price_per_person_double": price,
    }


@pytest.mark.anyio
async def test_create_rejects_overlapping_season(test_db, hotel_offering):
    svc = RateCatalogService(test_db)
    first = await svc.create_rate(
        TENANT_ID, ServiceType.HOTEL_ROOM, _hotel_payload(hotel_offering, date(2024, 1, 1), date(2024, 3, 31))
    )

    with pytest.raises(AppError) as exc_info:
        await svc.create_rate(
            TENANT_ID, ServiceType.HOTEL_ROOM, _hotel_payload(hotel_offering, date(2024, 3, 31), date(2024, 5, 31))
        )

    err = exc_info.value
    assert err.status_code == 409
    assert err.code == "rate_season_overlap"
    assert f"(ID: {first['id']}, 2024-01-01 - 2024-03-31)" in err.message
    assert err.message.endswith("for board type BB")


@pytest.mark.anyio
async def test_adjacent_seasons_and_other_board_types_are_allowed(test_db, hotel_offering):
    svc = RateCatalogService(test_db)
    await svc.create_rate(
        TENANT_ID, ServiceType.HOTEL_ROOM, _hotel_payload(hotel_offering, date(2024, 1, 1), date(2024, 3, 31))
    )
    await svc.create_rate(
        TENANT_ID, ServiceType.HOTEL_ROOM, _hotel_payload(hotel_offering, date(2024, 4, 1), date(2024, 6, 30))
    )
    await svc.create_rate(
        TENANT_ID,
        ServiceType.HOTEL_ROOM,
        _hotel_payload(hotel_offering, date(2024, 2, 1), date(2024, 5, 31), board_type="HB", price=130.0),
    )

    rates = await svc.list_rates(TENANT_ID, hotel_offering.id)
    assert [(r["board_type"], r["season_from"]) for r in rates] == [
        ("BB", "2024-01-01"),
        ("HB", "2024-02-01"),
        ("BB", "2024-04-01"),
    ]


@pytest.mark.anyio
async def test_ids_increase_with_creation_order(test_db, transfer_offering):
    svc = RateCatalogService(test_db)
    a = await svc.create_rate(
        TENANT_ID,
        ServiceType.TRANSFER,
        {"service_offering_id": transfer_offering.id, "season_from": date(2024, 1, 1), "season_to": date(2024, 1, 31), "base_cost_try": 1},
    )
    b = await svc.create_rate(
        TENANT_ID,
        ServiceType.TRANSFER,
        {"service_offering_id": transfer_offering.id, "season_from": date(2024, 2, 1), "season_to": date(2024, 2, 28), "base_cost_try": 1},
    )

    assert b["id"] > a["id"]


@pytest.mark.anyio
@pytest.mark.parametrize(
    "start, end",
    [
        (date(2024, 5, 1), date(2024, 4, 1)),
        (date(2024, 5, 1), date(2024, 5, 1)),
    ],
)
async def test_invalid_season_range(test_db, hotel_offering, start, end):
    with pytest.raises(AppError) as exc_info:
        await RateCatalogService(test_db).create_rate(
            TENANT_ID, ServiceType.HOTEL_ROOM, _hotel_payload(hotel_offering, start, end)
        )

    assert exc_info.value.status_code == 400
    assert exc_info.value.code == "invalid_season_range"
    assert exc_info.value.message == "Season start date must be before end date"


@pytest.mark.anyio
async def test_rate_type_must_match_offering(test_db, hotel_offering):
    with pytest.raises(AppError) as exc_info:
        await RateCatalogService(test_db).create_rate(
            TENANT_ID,
            ServiceType.TRANSFER,
            {
                "service_offering_id": hotel_offering.id,
                "season_from": date(2024, 1, 1),
                "season_to": date(2024, 2, 1),
                "base_cost_try": 100.0,
            },
        )

    assert exc_info.value.code == "unsupported_service_type"


@pytest.mark.anyio
async def test_update_excludes_itself_and_moves_claims(test_db, hotel_offering):
    svc = RateCatalogService(test_db)
    rate = await svc.create_rate(
        TENANT_ID, ServiceType.HOTEL_ROOM, _hotel_payload(hotel_offering, date(2024, 1, 1), date(2024, 1, 31))
    )

    # Extending over its own days is not an overlap
    updated = await svc.update_rate(
        TENANT_ID, rate["id"], {"season_from": date(2024, 1, 10), "season_to": date(2024, 2, 10)}
    )
    assert updated["season_from"] == "2024-01-10"
    assert updated["season_to"] == "2024-02-10"

    claims = await test_db.rate_season_days.find({"rate_id": rate["id"]}).to_list(length=None)
    days = {c["day"] for c in claims}
    assert len(days) == 32
    assert "2024-01-09" not in days
    assert "2024-02-10" in days

    # Released days are free for another season
    await svc.create_rate(
        TENANT_ID, ServiceType.HOTEL_ROOM, _hotel_payload(hotel_offering, date(2024, 1, 1), date(2024, 1, 9))
    )


@pytest.mark.anyio
async def test_update_into_other_season_conflicts(test_db, hotel_offering):
    svc = RateCatalogService(test_db)
    first = await svc.create_rate(
        TENANT_ID, ServiceType.HOTEL_ROOM, _hotel_payload(hotel_offering, date(2024, 1, 1), date(2024, 1, 31))
    )
    second = await svc.create_rate(
        TENANT_ID, ServiceType.HOTEL_ROOM, _hotel_payload(hotel_offering, date(2024, 2, 1), date(2024, 2, 28))
    )

    with pytest.raises(AppError) as exc_info:
        await svc.update_rate(TENANT_ID, second["id"], {"season_from": date(2024, 1, 20)})

    assert exc_info.value.status_code == 409
    assert f"ID: {first['id']}" in exc_info.value.message

    unchanged = await RateRepository(test_db).get(TENANT_ID, second["id"])
    assert unchanged.season_from == date(2024, 2, 1)


@pytest.mark.anyio
async def test_update_board_type_moves_claims(test_db, hotel_offering):
    svc = RateCatalogService(test_db)
    rate = await svc.create_rate(
        TENANT_ID, ServiceType.HOTEL_ROOM, _hotel_payload(hotel_offering, date(2024, 1, 1), date(2024, 1, 31))
    )

    await svc.update_rate(TENANT_ID, rate["id"], {"board_type": "HB"})

    # BB days are free again
    await svc.create_rate(
        TENANT_ID, ServiceType.HOTEL_ROOM, _hotel_payload(hotel_offering, date(2024, 1, 1), date(2024, 1, 31))
    )
    hb_days = await test_db.rate_season_days.count_documents({"rate_id": rate["id"], "sub_key": "HB"})
    assert hb_days == 31


@pytest.mark.anyio
async def test_deactivate_frees_days_and_stops_pricing(test_db, hotel_offering):
    svc = RateCatalogService(test_db)
    rate = await svc.create_rate(
        TENANT_ID, ServiceType.HOTEL_ROOM, _hotel_payload(hotel_offering, date(2024, 1, 1), date(2024, 1, 31))
    )

    out = await svc.deactivate_rate(TENANT_ID, rate["id"])

    assert out["is_active"] is False
    assert await test_db.rate_season_days.count_documents({"rate_id": rate["id"]}) == 0
    assert await svc.list_rates(TENANT_ID, hotel_offering.id) == []
    assert len(await svc.list_rates(TENANT_ID, hotel_offering.id, include_inactive=True)) == 1

    # Same window can be re-created
    await svc.create_rate(
        TENANT_ID, ServiceType.HOTEL_ROOM, _hotel_payload(hotel_offering, date(2024, 1, 1), date(2024, 1, 31))
    )


@pytest.mark.anyio
async def test_missing_rate_season(test_db):
    with pytest.raises(AppError) as exc_info:
        await RateCatalogService(test_db).deactivate_rate(TENANT_ID, 12345)

    assert exc_info.value.code == "rate_season_not_found"


@pytest.mark.anyio
async def test_claim_days_is_all_or_nothing(test_db, hotel_offering):
    repo = RateRepository(test_db)
    await repo.claim_days(TENANT_ID, hotel_offering.id, "BB", ["2024-01-03"], rate_id=77)

    with pytest.raises(SeasonDayTaken) as exc_info:
        await repo.claim_days(TENANT_ID, hotel_offering.id, "BB", ["2024-01-01", "2024-01-02", "2024-01-03"], rate_id=78)

    assert exc_info.value.day == "2024-01-03"
    assert await test_db.rate_season_days.count_documents({"rate_id": 78}) == 0


@pytest.mark.anyio
async def test_concurrent_writer_loses_at_storage_level(test_db, hotel_offering):
    """A season committed between our overlap check and our claims still blocks us."""

    svc = RateCatalogService(test_db)
    winner = await svc.create_rate(
        TENANT_ID, ServiceType.HOTEL_ROOM, _hotel_payload(hotel_offering, date(2024, 3, 1), date(2024, 3, 31))
    )

    # Simulate the race: the application-level check sees nothing.
    async def _blind_check(candidate):
        return None

    svc._ensure_free = _blind_check  # type: ignore[method-assign]

    with pytest.raises(AppError) as exc_info:
        await svc.create_rate(
            TENANT_ID, ServiceType.HOTEL_ROOM, _hotel_payload(hotel_offering, date(2024, 2, 20), date(2024, 3, 5))
        )

    assert exc_info.value.status_code == 409
    assert f"ID: {winner['id']}" in exc_info.value.message

    # Loser left no partial claims and no rate document behind
    assert await test_db.rate_season_days.count_documents({"rate_id": {"$ne": winner["id"]}}) == 0
    assert await test_db.rate_seasons.count_documents({}) == 1


@pytest.mark.anyio
async def test_update_rejects_unknown_pricing_model(test_db, guide_offering):
    svc = RateCatalogService(test_db)
    created = await svc.create_rate(
        TENANT_ID,
        ServiceType.GUIDE_SERVICE,
        {
            "service_offering_id": guide_offering.id,
            "season_from": date(2024, 1, 1),
            "season_to": date(2024, 12, 31),
            "pricing_model": "PER_DAY",
            "day_cost_try": 2000.0,
        },
    )

    with pytest.raises(AppError) as exc_info:
        await svc.update_rate(TENANT_ID, created["id"], {"pricing_model": "PER_WEEK"})

    assert exc_info.value.status_code == 400
    assert exc_info.value.code == "invalid_pricing_model"
    assert exc_info.value.details["allowed"] == ["PER_DAY", "PER_HOUR"]

    updated = await svc.update_rate(
        TENANT_ID, created["id"], {"pricing_model": "PER_HOUR", "hour_cost_try": 300.0}
    )
    assert updated["pricing_model"] == "PER_HOUR"
    stored = await test_db.rate_seasons.find_one({"_id": created["id"]})
    assert stored["pricing_model"] == "PER_HOUR"
