from __future__ import annotations

from typing import Any, Dict

from rate_engine.domain.offerings import ServiceOffering, ServiceType
from rate_engine.domain.quotes import QuoteRequest, StrategyResult
from rate_engine.domain.rates import RateSeason, TransferRate
from rate_engine.services.pricing_strategies.base import (
    PricingStrategy,
    ensure_max_capacity,
    ensure_party,
    expect_rate,
)
from rate_engine.utils import money


class TransferStrategy(PricingStrategy):
    service_type = ServiceType.TRANSFER

    def price(self, offering: ServiceOffering, rate: RateSeason, request: QuoteRequest) -> StrategyResult:
        rate = expect_rate(rate, TransferRate)

        pax = request.pax or 1
        ensure_party(pax, 0)
        ensure_max_capacity(pax, offering.attr("max_passengers"), "transfer maximum capacity")

        base = float(rate.base_cost_try)
        total = base
        breakdown: Dict[str, Any] = {"base_cost": base}

        if request.distance and rate.included_km is not None and request.distance > rate.included_km:
            extra_km = request.distance - rate.included_km
            unit = float(rate.extra_km_try or 0.0)
            cost = extra_km * unit
            breakdown["extra_km"] = {"km": extra_km, "unit_cost": unit, "cost": money(cost)}
            total += cost

        if request.hours and rate.included_hours is not None and request.hours > rate.included_hours:
            extra_hours = request.hours - rate.included_hours
            unit = float(rate.extra_hour_try or 0.0)
            cost = extra_hours * unit
            breakdown["extra_hours"] = {"hours": extra_hours, "unit_cost": unit, "cost": money(cost)}
            total += cost

        return StrategyResult(
            pricing_model=rate.pricing_model,
            breakdown=breakdown,
            total_cost_try=total,
            details={
                "origin_zone": offering.attr("origin_zone"),
                "dest_zone": offering.attr("dest_zone"),
                "transfer_type": offering.attr("transfer_type"),
                "vehicle_class": offering.attr("vehicle_class"),
                "pax": pax,
                "distance": request.distance,
                "hours": request.hours,
            },
            pricing_extras={"base_cost_try": base},
        )
