from __future__ import annotations

import logging
from datetime import date
from typing import Dict, Iterable, List, Optional

from rate_engine.domain.offerings import ServiceType
from rate_engine.domain.rates import RateSeason
from rate_engine.errors import not_found
from rate_engine.repositories.rate_repository import RateRepository

logger = logging.getLogger(__name__)


def pick_rate(candidates: Iterable[RateSeason], as_of: date, sub_key: Optional[str] = None) -> Optional[RateSeason]:
    """Select the single active season covering `as_of`.

    Overlapping active seasons should not exist; if they do, the most
    recently created one (highest id) wins.
    """

    matches = [
        rate
        for rate in candidates
        if rate.is_active and rate.covers(as_of) and (sub_key is None or rate.sub_key == sub_key)
    ]
    if not matches:
        return None
    by_key: Dict[Optional[str], List[int]] = {}
    for rate in matches:
        by_key.setdefault(rate.sub_key, []).append(rate.id)
    # Different board types on one day are allowed; same key is a breach.
    for key, ids in by_key.items():
        if len(ids) > 1:
            logger.warning(
                "Overlapping active rate seasons %s for offering %s on %s (key %s); using highest id",
                sorted(ids),
                matches[0].service_offering_id,
                as_of.isoformat(),
                key or "-",
            )
    return max(matches, key=lambda r: r.id)


class RateResolver:
    def __init__(self, rates: RateRepository) -> None:
        self._rates = rates

    async def resolve(
        self,
        tenant_id: str,
        service_offering_id: int,
        as_of: date,
        sub_key: Optional[str] = None,
        service_type: Optional[ServiceType] = None,
    ) -> RateSeason:
        candidates = await self._rates.find_candidates(
            tenant_id,
            service_offering_id,
            as_of,
            sub_key=sub_key,
            service_type=service_type.value if service_type else None,
        )
        rate = pick_rate(candidates, as_of, sub_key=sub_key)
        if rate is None:
            raise not_found(
                "rate_not_found",
                "No active rate found for the selected date",
                service_offering_id=service_offering_id,
                service_date=as_of.isoformat(),
            )
        return rate
