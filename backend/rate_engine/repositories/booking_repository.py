from __future__ import annotations

from typing import Any, Dict, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from rate_engine.repositories.base_repository import get_collection, with_tenant_filter
from rate_engine.utils import now_utc


class BookingRepository:
    """Bookings are owned by the booking workflow; only the exchange lock is written here."""

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._db = db
        self._col = get_collection(db, "bookings")

    async def get_by_id(self, tenant_id: str, booking_id: int) -> Optional[Dict[str, Any]]:
        return await self._col.find_one(with_tenant_filter({"_id": int(booking_id)}, tenant_id))

    async def set_exchange_lock(self, tenant_id: str, booking_id: int, lock: Dict[str, Any]) -> bool:
        """Write the lock only if the booking has none yet; first writer wins.

        Returns True when this call stored the lock.
        """

        now = now_utc()
        res = await self._col.update_one(
            with_tenant_filter({"_id": int(booking_id), "locked_exchange_rate": None}, tenant_id),
            {"$set": {**lock, "exchange_locked_at": now, "updated_at": now}},
        )
        return res.modified_count > 0
