"""MongoDB-based read-through cache.

Uses the app_cache collection with a TTL index. The cache never blocks a
request: every error is logged and treated as a miss (reads) or ignored
(writes and invalidations), and the caller falls back to the store.
"""
from __future__ import annotations

import logging
import uuid
from datetime import timedelta, timezone
from typing import Any, Awaitable, Callable, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from rate_engine.utils import now_utc

logger = logging.getLogger(__name__)


async def cache_get(db: AsyncIOMotorDatabase, key: str, tenant_id: str = "") -> Optional[Any]:
    """Get cached value. Returns None on miss, expiry or cache failure."""
    try:
        doc = await db.app_cache.find_one({"key": key, "tenant_id": tenant_id})
        if not doc:
            logger.debug("Cache miss for %s", key)
            return None
        expires_at = doc.get("expires_at")
        if expires_at is not None:
            if expires_at.tzinfo is None:
                expires_at = expires_at.replace(tzinfo=timezone.utc)
            if expires_at < now_utc():
                logger.debug("Cache expired for %s", key)
                return None
        logger.debug("Cache hit for %s", key)
        return doc.get("value")
    except Exception as exc:
        logger.warning("Cache read error for %s: %s", key, exc)
        return None


async def cache_set(
    db: AsyncIOMotorDatabase,
    key: str,
    value: Any,
    ttl_seconds: int = 300,
    tenant_id: str = "",
) -> None:
    """Set cache value with TTL."""
    try:
        now = now_utc()
        await db.app_cache.update_one(
            {"key": key, "tenant_id": tenant_id},
            {
                "$set": {
                    "value": value,
                    "expires_at": now + timedelta(seconds=ttl_seconds),
                    "updated_at": now,
                },
                "$setOnInsert": {
                    "_id": str(uuid.uuid4()),
                    "key": key,
                    "tenant_id": tenant_id,
                    "created_at": now,
                },
            },
            upsert=True,
        )
    except Exception as exc:
        logger.warning("Cache write error for %s: %s", key, exc)


async def cache_invalidate(db: AsyncIOMotorDatabase, key: str, tenant_id: str = "") -> None:
    """Invalidate a cache entry."""
    try:
        await db.app_cache.delete_many({"key": key, "tenant_id": tenant_id})
        logger.debug("Invalidated cache for %s", key)
    except Exception as exc:
        logger.warning("Cache invalidation error for %s: %s", key, exc)


async def cached(
    db: AsyncIOMotorDatabase,
    key: str,
    compute_fn: Callable[[], Awaitable[Any]],
    ttl_seconds: int = 300,
    tenant_id: str = "",
) -> Any:
    """Read-through cache helper.
    Usage: value = await cached(db, "exchange_rate:t1:TRY:EUR", load, ttl_seconds=3600)
    """
    hit = await cache_get(db, key, tenant_id)
    if hit is not None:
        return hit
    result = await compute_fn()
    await cache_set(db, key, result, ttl_seconds, tenant_id)
    return result
