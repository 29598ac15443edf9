from __future__ import annotations

from typing import Any, Dict, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from rate_engine.domain.offerings import ServiceOffering
from rate_engine.repositories.base_repository import get_collection, next_sequence
from rate_engine.utils import now_utc


class OfferingRepository:
    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._db = db
        self._col = get_collection(db, "service_offerings")

    async def get_offering(self, tenant_id: str, offering_id: int) -> Optional[ServiceOffering]:
        """Load an offering; offerings of another tenant are reported as missing."""

        doc = await self._col.find_one({"_id": int(offering_id)})
        if not doc or str(doc.get("tenant_id")) != str(tenant_id):
            return None
        return ServiceOffering.from_doc(doc)

    async def create_offering(self, tenant_id: str, payload: Dict[str, Any]) -> ServiceOffering:
        now = now_utc()
        doc: Dict[str, Any] = dict(payload)
        doc.update(
            {
                "_id": await next_sequence(self._db, "service_offerings"),
                "tenant_id": tenant_id,
                "created_at": now,
                "updated_at": now,
            }
        )
        await self._col.insert_one(doc)
        return ServiceOffering.from_doc(doc)
