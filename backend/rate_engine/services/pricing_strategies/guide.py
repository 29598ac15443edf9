from __future__ import annotations

from typing import Any, Dict

from rate_engine.domain.offerings import ServiceOffering, ServiceType
from rate_engine.domain.quotes import QuoteRequest, StrategyResult
from rate_engine.domain.rates import GuidePricingModel, GuideRate, RateSeason
from rate_engine.services.pricing_strategies.base import PricingStrategy, expect_rate, fmt_qty, rate_incomplete
from rate_engine.utils import money

DEFAULT_HOURS = 8


class GuideServiceStrategy(PricingStrategy):
    """Priced by the rate's own model; the request only supplies quantities."""

    service_type = ServiceType.GUIDE_SERVICE

    def price(self, offering: ServiceOffering, rate: RateSeason, request: QuoteRequest) -> StrategyResult:
        rate = expect_rate(rate, GuideRate)

        breakdown: Dict[str, Any] = {}

        if rate.pricing_model == GuidePricingModel.PER_DAY.value:
            if rate.day_cost_try is None:
                raise rate_incomplete(rate, "Guide rate is PER_DAY but has no day cost")
            days = request.days or 1
            unit = float(rate.day_cost_try)
            total = unit * days
            breakdown["days"] = {"quantity": days, "unit_cost": unit, "cost": money(total)}
        elif rate.pricing_model == GuidePricingModel.PER_HOUR.value:
            if rate.hour_cost_try is None:
                raise rate_incomplete(rate, "Guide rate is PER_HOUR but has no hour cost")
            hours = float(request.hours or DEFAULT_HOURS)
            billable = max(hours, float(rate.min_hours or 0))
            unit = float(rate.hour_cost_try)
            total = unit * billable
            breakdown["hours"] = {"quantity": billable, "unit_cost": unit, "cost": money(total)}
            if hours < billable:
                breakdown["note"] = f"Minimum {fmt_qty(billable)} hours applies"
        else:
            raise rate_incomplete(rate, f"Unknown guide pricing model {rate.pricing_model}")

        return StrategyResult(
            pricing_model=rate.pricing_model,
            breakdown=breakdown,
            total_cost_try=total,
            details={
                "guide_name": offering.attr("guide_name"),
                "languages": list(offering.attr("languages", [])),
                "days": request.days,
                "hours": request.hours,
            },
        )
