from __future__ import annotations

from datetime import date

import pytest

from rate_engine.domain.rates import HotelRoomRate, TransferRate
from rate_engine.errors import AppError
from rate_engine.repositories.rate_repository import RateRepository
from rate_engine.services.rate_resolver import RateResolver, pick_rate


def _transfer(rate_id, start, end, is_active=True):
    return TransferRate(
        id=rate_id,
        tenant_id="t1",
        service_offering_id=1,
        season_from=start,
        season_to=end,
        is_active=is_active,
        base_cost_try=100.0,
    )


def test_pick_rate_selects_covering_active_season():
    winter = _transfer(1, date(2024, 1, 1), date(2024, 3, 31))
    spring = _transfer(2, date(2024, 4, 1), date(2024, 6, 30))

    assert pick_rate([winter, spring], date(2024, 4, 1)) is spring
    assert pick_rate([winter, spring], date(2024, 3, 31)) is winter
    assert pick_rate([winter, spring], date(2024, 7, 1)) is None


def test_pick_rate_skips_inactive():
    old = _transfer(1, date(2024, 1, 1), date(2024, 12, 31), is_active=False)

    assert pick_rate([old], date(2024, 5, 1)) is None


def test_pick_rate_highest_id_wins_on_overlap(caplog):
    first = _transfer(3, date(2024, 1, 1), date(2024, 12, 31))
    second = _transfer(8, date(2024, 5, 1), date(2024, 5, 31))

    with caplog.at_level("WARNING"):
        chosen = pick_rate([second, first], date(2024, 5, 10))

    assert chosen is second
    assert "Overlapping active rate seasons" in caplog.text


def test_pick_rate_filters_by_board_type():
    bb = HotelRoomRate(
        id=1, tenant_id="t1", service_offering_id=1,
        season_from=date(2024, 1, 1), season_to=date(2024, 12, 31),
        board_type="BB", price_per_person_double=100.0,
    )
    hb = HotelRoomRate(
        id=2, tenant_id="t1", service_offering_id=1,
        season_from=date(2024, 1, 1), season_to=date(2024, 12, 31),
        board_type="HB", price_per_person_double=130.0,
    )

    assert pick_rate([bb, hb], date(2024, 6, 1), sub_key="BB") is bb
    assert pick_rate([bb, hb], date(2024, 6, 1), sub_key="AI") is None


def test_pick_rate_board_types_sharing_a_day_are_not_a_conflict(caplog):
    bb = HotelRoomRate(
        id=1, tenant_id="t1", service_offering_id=1,
        season_from=date(2024, 1, 1), season_to=date(2024, 12, 31),
        board_type="BB", price_per_person_double=100.0,
    )
    hb = HotelRoomRate(
        id=2, tenant_id="t1", service_offering_id=1,
        season_from=date(2024, 1, 1), season_to=date(2024, 12, 31),
        board_type="HB", price_per_person_double=130.0,
    )

    with caplog.at_level("WARNING"):
        chosen = pick_rate([bb, hb], date(2024, 6, 1))

    assert chosen is hb
    assert "Overlapping active rate seasons" not in caplog.text


@pytest.mark.anyio
async def test_resolver_reads_store_and_raises_not_found(test_db):
    await test_db.rate_seasons.insert_many(
        [
            {
                "_id": 1,
                "tenant_id": "t1",
                "service_offering_id": 10,
                "service_type": "TRANSFER",
                "season_from": "2024-01-01",
                "season_to": "2024-06-30",
                "is_active": True,
                "base_cost_try": 500.0,
            },
            {
                "_id": 2,
                "tenant_id": "t2",
                "service_offering_id": 10,
                "service_type": "TRANSFER",
                "season_from": "2024-01-01",
                "season_to": "2024-12-31",
                "is_active": True,
                "base_cost_try": 999.0,
            },
        ]
    )
    resolver = RateResolver(RateRepository(test_db))

    rate = await resolver.resolve("t1", 10, date(2024, 2, 1))
    assert rate.id == 1
    assert rate.base_cost_try == 500.0

    with pytest.raises(AppError) as exc_info:
        await resolver.resolve("t1", 10, date(2024, 8, 1))
    assert exc_info.value.status_code == 404
    assert exc_info.value.message == "No active rate found for the selected date"
