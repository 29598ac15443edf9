from __future__ import annotations

from typing import Any, Dict

from rate_engine.domain.offerings import ServiceOffering, ServiceType
from rate_engine.domain.quotes import QuoteRequest, StrategyResult
from rate_engine.domain.rates import ActivityRate, RateSeason
from rate_engine.services.pricing_strategies.base import (
    PricingStrategy,
    ensure_max_capacity,
    ensure_min_participants,
    ensure_party,
    expect_rate,
)
from rate_engine.utils import money


class ActivityStrategy(PricingStrategy):
    service_type = ServiceType.ACTIVITY

    def price(self, offering: ServiceOffering, rate: RateSeason, request: QuoteRequest) -> StrategyResult:
        rate = expect_rate(rate, ActivityRate)

        pax = request.pax or 1
        children = request.children or 0
        ensure_party(pax, children)
        ensure_min_participants(pax, offering.attr("min_participants"))
        ensure_max_capacity(pax, offering.attr("max_participants"), "maximum capacity")

        unit = float(rate.base_cost_try)
        adults = pax - children
        breakdown: Dict[str, Any] = {
            "base_cost_per_person": unit,
            "adults": {"quantity": adults, "unit_cost": unit, "cost": money(adults * unit)},
        }

        child_unit = unit
        if children and rate.child_discount_pct:
            discount = float(rate.child_discount_pct)
            child_unit = unit * (1 - discount / 100)
            breakdown["children"] = {
                "quantity": children,
                "unit_cost": money(child_unit),
                "discount": discount,
                "cost": money(children * child_unit),
            }
        elif children:
            breakdown["children"] = {
                "quantity": children,
                "unit_cost": unit,
                "discount": 0.0,
                "cost": money(children * unit),
            }

        total = adults * unit + children * child_unit

        return StrategyResult(
            pricing_model=rate.pricing_model,
            breakdown=breakdown,
            total_cost_try=total,
            details={
                "operator_name": offering.attr("operator_name"),
                "activity_type": offering.attr("activity_type"),
                "duration_minutes": offering.attr("duration_minutes"),
                "adults": adults,
                "children": children,
                "pax": pax,
            },
        )
