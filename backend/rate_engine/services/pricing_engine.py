from __future__ import annotations

import logging
from typing import Dict, Mapping, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from rate_engine import config
from rate_engine.domain.offerings import ServiceType
from rate_engine.domain.quotes import QuoteRequest, QuoteResult
from rate_engine.errors import bad_request, not_found
from rate_engine.repositories.offering_repository import OfferingRepository
from rate_engine.repositories.rate_repository import RateRepository
from rate_engine.services.pricing_strategies import PricingStrategy, default_strategies
from rate_engine.services.rate_resolver import RateResolver
from rate_engine.utils import money

logger = logging.getLogger(__name__)


class PricingEngine:
    """Quote a service offering for a date.

    Flow: load offering -> pick category strategy -> resolve the single
    active rate season -> strategy validates the party and computes the
    breakdown. Nothing is written; identical inputs give identical quotes.
    """

    def __init__(
        self,
        db: Optional[AsyncIOMotorDatabase] = None,
        *,
        offerings: Optional[OfferingRepository] = None,
        rates: Optional[RateRepository] = None,
        strategies: Optional[Mapping[ServiceType, PricingStrategy]] = None,
    ) -> None:
        table: Dict[ServiceType, PricingStrategy] = dict(strategies or default_strategies())
        missing = [t.value for t in ServiceType if t not in table]
        if missing:
            raise RuntimeError(f"No pricing strategy registered for: {', '.join(missing)}")
        self._strategies = table

        if db is None and (offerings is None or rates is None):
            raise ValueError("PricingEngine needs a db or both repositories")
        self._offerings = offerings or OfferingRepository(db)
        self._resolver = RateResolver(rates or RateRepository(db))

    async def quote(self, tenant_id: str, request: QuoteRequest) -> QuoteResult:
        offering = await self._offerings.get_offering(tenant_id, request.service_offering_id)
        if offering is None:
            raise not_found(
                "service_offering_not_found",
                "Service offering not found",
                service_offering_id=request.service_offering_id,
            )

        category = offering.category
        strategy = self._strategies.get(category) if category else None
        if strategy is None:
            raise bad_request(
                "unsupported_service_type",
                "Unsupported service type",
                service_type=offering.service_type,
            )

        rate = await self._resolver.resolve(
            tenant_id,
            offering.id,
            request.service_date,
            sub_key=strategy.sub_key(request),
            service_type=category,
        )

        result = strategy.price(offering, rate, request)

        pricing = {
            "rate_id": rate.id,
            "pricing_model": result.pricing_model,
            **result.pricing_extras,
            "breakdown": result.breakdown,
            "total_cost_try": money(result.total_cost_try),
            "currency": config.SETTLEMENT_CURRENCY,
        }

        logger.debug(
            "Quoted offering %s (%s) for %s with rate %s: %.2f TRY",
            offering.id,
            category.value,
            request.service_date.isoformat(),
            rate.id,
            pricing["total_cost_try"],
        )

        return QuoteResult(
            service_offering_id=offering.id,
            service_type=category.value,
            service_title=offering.title,
            supplier=offering.supplier_name,
            service_date=request.service_date.isoformat(),
            details=result.details,
            pricing=pricing,
        )
