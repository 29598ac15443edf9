from __future__ import annotations

from typing import Any, Dict

from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ReturnDocument


def get_collection(db: AsyncIOMotorDatabase, name: str) -> AsyncIOMotorCollection:
    """Return a Motor collection from the given database.

    This is the only place where services should obtain collections.
    """

    return db[name]


def with_tenant_filter(filter_dict: Dict[str, Any], tenant_id: str) -> Dict[str, Any]:
    """Inject tenant_id into a Mongo filter dict.

    Ensures that all multi-tenant queries are scoped by tenant_id.
    """

    if not tenant_id:
        raise ValueError("tenant_id is required for tenant-scoped queries")

    f = dict(filter_dict or {})
    f.setdefault("tenant_id", tenant_id)
    return f


async def next_sequence(db: AsyncIOMotorDatabase, name: str) -> int:
    """Atomically allocate the next integer id for `name`.

    Ids are strictly increasing, so a higher id always means a later insert.
    """

    doc = await get_collection(db, "counters").find_one_and_update(
        {"_id": name},
        {"$inc": {"seq": 1}},
        upsert=True,
        return_document=ReturnDocument.AFTER,
    )
    return int(doc["seq"])
