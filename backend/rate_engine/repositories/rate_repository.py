from __future__ import annotations

from datetime import date
from typing import Any, Dict, Iterable, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from rate_engine.domain.rates import RateSeason, rate_from_doc
from rate_engine.repositories.base_repository import get_collection, with_tenant_filter
from rate_engine.utils import iso_day, now_utc

# Sub-key stored on day claims for categories without one (unique index
# fields must be comparable, so None is avoided).
NO_SUB_KEY = "*"


class SeasonDayTaken(Exception):
    """A calendar day is already claimed by another active rate season."""

    def __init__(self, day: str) -> None:
        super().__init__(f"Season day already claimed: {day}")
        self.day = day


class RateRepository:
    """Rate seasons plus their per-day claims.

    Every active season owns one rate_season_days document per covered day.
    The unique index on (tenant_id, service_offering_id, sub_key, day) is
    the storage-level exclusion constraint behind the overlap invariant.
    """

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._db = db
        self._col = get_collection(db, "rate_seasons")
        self._days = get_collection(db, "rate_season_days")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    async def find_candidates(
        self,
        tenant_id: str,
        service_offering_id: int,
        as_of: date,
        *,
        sub_key: Optional[str] = None,
        service_type: Optional[str] = None,
    ) -> List[RateSeason]:
        day = iso_day(as_of)
        query: Dict[str, Any] = {
            "service_offering_id": int(service_offering_id),
            "is_active": True,
            "season_from": {"$lte": day},
            "season_to": {"$gte": day},
        }
        if service_type is not None:
            query["service_type"] = service_type
        if sub_key is not None:
            query["board_type"] = sub_key
        docs = await self._col.find(with_tenant_filter(query, tenant_id)).sort("_id", -1).to_list(length=50)
        return [rate_from_doc(d) for d in docs]

    async def find_overlapping(
        self,
        tenant_id: str,
        service_offering_id: int,
        season_from: date,
        season_to: date,
        *,
        sub_key: Optional[str] = None,
        exclude_id: Optional[int] = None,
    ) -> List[RateSeason]:
        query: Dict[str, Any] = {
            "service_offering_id": int(service_offering_id),
            "is_active": True,
            "season_from": {"$lte": iso_day(season_to)},
            "season_to": {"$gte": iso_day(season_from)},
        }
        if sub_key is not None:
            query["board_type"] = sub_key
        if exclude_id is not None:
            query["_id"] = {"$ne": int(exclude_id)}
        docs = await self._col.find(with_tenant_filter(query, tenant_id)).sort("_id", 1).to_list(length=100)
        return [rate_from_doc(d) for d in docs]

    async def list_for_offering(
        self,
        tenant_id: str,
        service_offering_id: int,
        *,
        include_inactive: bool = False,
    ) -> List[RateSeason]:
        query: Dict[str, Any] = {"service_offering_id": int(service_offering_id)}
        if not include_inactive:
            query["is_active"] = True
        cursor = self._col.find(with_tenant_filter(query, tenant_id)).sort([("season_from", 1), ("_id", 1)])
        docs = await cursor.to_list(length=1000)
        return [rate_from_doc(d) for d in docs]

    async def get(self, tenant_id: str, rate_id: int) -> Optional[RateSeason]:
        doc = await self._col.find_one(with_tenant_filter({"_id": int(rate_id)}, tenant_id))
        return rate_from_doc(doc) if doc else None

    async def get_day_holder(
        self,
        tenant_id: str,
        service_offering_id: int,
        sub_key: Optional[str],
        day: str,
    ) -> Optional[RateSeason]:
        claim = await self._days.find_one(
            {
                "tenant_id": tenant_id,
                "service_offering_id": int(service_offering_id),
                "sub_key": sub_key or NO_SUB_KEY,
                "day": day,
            }
        )
        if not claim:
            return None
        return await self.get(tenant_id, claim["rate_id"])

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    async def insert(self, doc: Dict[str, Any]) -> RateSeason:
        now = now_utc()
        doc = dict(doc)
        doc.setdefault("created_at", now)
        doc["updated_at"] = now
        await self._col.insert_one(doc)
        return rate_from_doc(doc)

    async def update(self, tenant_id: str, rate_id: int, updates: Dict[str, Any]) -> Optional[RateSeason]:
        updates = dict(updates)
        updates["updated_at"] = now_utc()
        await self._col.update_one(
            with_tenant_filter({"_id": int(rate_id)}, tenant_id),
            {"$set": updates},
        )
        return await self.get(tenant_id, rate_id)

    async def claim_days(
        self,
        tenant_id: str,
        service_offering_id: int,
        sub_key: Optional[str],
        days: Iterable[str],
        rate_id: int,
    ) -> None:
        """Claim each day for `rate_id`; all-or-nothing.

        On the first day already held by another season the claims made by
        this call are removed again and SeasonDayTaken is raised.
        """

        now = now_utc()
        claimed: List[str] = []
        for day in days:
            try:
                await self._days.insert_one(
                    {
                        "tenant_id": tenant_id,
                        "service_offering_id": int(service_offering_id),
                        "sub_key": sub_key or NO_SUB_KEY,
                        "day": day,
                        "rate_id": int(rate_id),
                        "created_at": now,
                    }
                )
            except DuplicateKeyError:
                if claimed:
                    await self.release_days(rate_id, sub_key=sub_key, days=claimed)
                raise SeasonDayTaken(day)
            claimed.append(day)

    async def release_days(
        self,
        rate_id: int,
        *,
        sub_key: Optional[str] = None,
        days: Optional[Iterable[str]] = None,
    ) -> None:
        query: Dict[str, Any] = {"rate_id": int(rate_id)}
        if days is not None:
            query["day"] = {"$in": list(days)}
            query["sub_key"] = sub_key or NO_SUB_KEY
        await self._days.delete_many(query)
