from __future__ import annotations

from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from rate_engine.repositories.base_repository import get_collection, next_sequence, with_tenant_filter
from rate_engine.utils import now_utc


class ExchangeRateRepository:
    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._db = db
        self._col = get_collection(db, "exchange_rates")

    async def find_latest(self, tenant_id: str, from_currency: str, to_currency: str) -> Optional[Dict[str, Any]]:
        """Newest recorded rate for the pair by rate_date (id breaks ties)."""

        cursor = (
            self._col.find(
                with_tenant_filter(
                    {"from_currency": from_currency, "to_currency": to_currency},
                    tenant_id,
                )
            )
            .sort([("rate_date", -1), ("_id", -1)])
            .limit(1)
        )
        docs = await cursor.to_list(length=1)
        return docs[0] if docs else None

    async def find_for_date(
        self,
        tenant_id: str,
        from_currency: str,
        to_currency: str,
        rate_date: str,
    ) -> Optional[Dict[str, Any]]:
        return await self._col.find_one(
            with_tenant_filter(
                {"from_currency": from_currency, "to_currency": to_currency, "rate_date": rate_date},
                tenant_id,
            )
        )

    async def get(self, tenant_id: str, rate_id: int) -> Optional[Dict[str, Any]]:
        return await self._col.find_one(with_tenant_filter({"_id": int(rate_id)}, tenant_id))

    async def list(
        self,
        tenant_id: str,
        *,
        from_currency: Optional[str] = None,
        to_currency: Optional[str] = None,
        skip: int = 0,
        limit: int = 50,
    ) -> tuple[List[Dict[str, Any]], int]:
        query: Dict[str, Any] = {}
        if from_currency:
            query["from_currency"] = from_currency
        if to_currency:
            query["to_currency"] = to_currency
        query = with_tenant_filter(query, tenant_id)
        cursor = self._col.find(query).sort([("rate_date", -1), ("_id", -1)]).skip(skip).limit(limit)
        items = await cursor.to_list(length=limit)
        total = await self._col.count_documents(query)
        return items, total

    async def insert(self, tenant_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        now = now_utc()
        doc: Dict[str, Any] = dict(payload)
        doc.update(
            {
                "_id": await next_sequence(self._db, "exchange_rates"),
                "tenant_id": tenant_id,
                "created_at": now,
                "updated_at": now,
            }
        )
        await self._col.insert_one(doc)
        return doc

    async def update(self, tenant_id: str, rate_id: int, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        updates = dict(updates)
        updates["updated_at"] = now_utc()
        await self._col.update_one(with_tenant_filter({"_id": int(rate_id)}, tenant_id), {"$set": updates})
        return await self.get(tenant_id, rate_id)

    async def delete(self, tenant_id: str, rate_id: int) -> bool:
        res = await self._col.delete_one(with_tenant_filter({"_id": int(rate_id)}, tenant_id))
        return res.deleted_count > 0
