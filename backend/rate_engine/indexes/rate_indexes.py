from __future__ import annotations

from pymongo import ASCENDING, DESCENDING
from pymongo.errors import OperationFailure
import logging

logger = logging.getLogger(__name__)


async def ensure_rate_indexes(db):
    """Ensure indexes for offerings, rate seasons, exchange rates and the cache.

    The unique index on rate_season_days is load-bearing: it is the
    exclusion constraint behind the no-overlap invariant. Conflicts with an
    existing index of the same name are logged and skipped.
    """

    async def _safe_create(collection, *args, **kwargs):
        try:
            await collection.create_index(*args, **kwargs)
        except OperationFailure as e:
            msg = str(e).lower()
            if (
                "indexoptionsconflict" in msg
                or "indexkeyspecsconflict" in msg
                or "already exists" in msg
            ):
                logger.warning(
                    "[rate_indexes] Keeping existing index for %s (name=%s): %s",
                    collection.name,
                    kwargs.get("name"),
                    msg,
                )
                return
            raise

    await _safe_create(
        db.service_offerings,
        [("tenant_id", ASCENDING), ("service_type", ASCENDING)],
        name="offerings_tenant_type",
    )

    # Resolver lookup: tenant + offering + active + season window
    await _safe_create(
        db.rate_seasons,
        [
            ("tenant_id", ASCENDING),
            ("service_offering_id", ASCENDING),
            ("is_active", ASCENDING),
            ("season_from", ASCENDING),
            ("season_to", ASCENDING),
        ],
        name="rate_seasons_lookup",
    )

    # One claim per (offering, board type, day) across all active seasons
    await _safe_create(
        db.rate_season_days,
        [
            ("tenant_id", ASCENDING),
            ("service_offering_id", ASCENDING),
            ("sub_key", ASCENDING),
            ("day", ASCENDING),
        ],
        unique=True,
        name="uniq_rate_season_day",
    )
    await _safe_create(
        db.rate_season_days,
        [("rate_id", ASCENDING)],
        name="rate_season_days_by_rate",
    )

    await _safe_create(
        db.exchange_rates,
        [
            ("tenant_id", ASCENDING),
            ("from_currency", ASCENDING),
            ("to_currency", ASCENDING),
            ("rate_date", ASCENDING),
        ],
        unique=True,
        name="uniq_exchange_rate_pair_date",
    )
    await _safe_create(
        db.exchange_rates,
        [("tenant_id", ASCENDING), ("rate_date", DESCENDING)],
        name="exchange_rates_tenant_date",
    )

    await _safe_create(
        db.app_cache,
        [("key", ASCENDING), ("tenant_id", ASCENDING)],
        unique=True,
        name="uniq_app_cache_key_tenant",
    )
    await _safe_create(
        db.app_cache,
        [("expires_at", ASCENDING)],
        expireAfterSeconds=0,
        name="app_cache_ttl",
    )

    logger.info("Rate engine indexes ensured")
