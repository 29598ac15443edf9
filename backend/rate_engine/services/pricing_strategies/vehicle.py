from __future__ import annotations

from typing import Any, Dict

from rate_engine.domain.offerings import ServiceOffering, ServiceType
from rate_engine.domain.quotes import QuoteRequest, StrategyResult
from rate_engine.domain.rates import RateSeason, VehicleRate
from rate_engine.services.pricing_strategies.base import (
    PricingStrategy,
    ensure_max_capacity,
    ensure_party,
    expect_rate,
    fmt_qty,
    rate_incomplete,
)
from rate_engine.utils import money

DEFAULT_MIN_HOURS = 4


class VehicleHireStrategy(PricingStrategy):
    """Daily hire when days are given, otherwise hourly hire with a minimum."""

    service_type = ServiceType.VEHICLE_HIRE

    def price(self, offering: ServiceOffering, rate: RateSeason, request: QuoteRequest) -> StrategyResult:
        rate = expect_rate(rate, VehicleRate)

        pax = request.pax or 1
        ensure_party(pax, 0)
        ensure_max_capacity(pax, offering.attr("max_passengers"), "vehicle maximum capacity")

        with_driver = bool(offering.attr("with_driver", False))
        breakdown: Dict[str, Any] = {}

        if request.days:
            days = request.days
            pricing_model = "DAILY"
            daily = float(rate.daily_rate_try)
            total = daily * days
            breakdown["daily_rate"] = {"days": days, "unit_cost": daily, "cost": money(total)}

            if with_driver and rate.driver_daily_try:
                driver_cost = float(rate.driver_daily_try) * days
                breakdown["driver"] = {"days": days, "unit_cost": float(rate.driver_daily_try), "cost": money(driver_cost)}
                total += driver_cost

            if request.distance and rate.daily_km_included:
                included_km = float(rate.daily_km_included) * days
                if request.distance > included_km:
                    extra_km = request.distance - included_km
                    unit = float(rate.extra_km_try or 0.0)
                    extra_cost = extra_km * unit
                    breakdown["extra_km"] = {"km": extra_km, "unit_cost": unit, "cost": money(extra_cost)}
                    total += extra_cost
        else:
            if rate.hourly_rate_try is None:
                raise rate_incomplete(rate, "Vehicle rate has no hourly price; request days instead")
            pricing_model = "HOURLY"
            min_hours = float(rate.min_hours or DEFAULT_MIN_HOURS)
            hours = float(request.hours or min_hours)
            billable = max(hours, min_hours)
            hourly = float(rate.hourly_rate_try)
            total = hourly * billable
            breakdown["hourly_rate"] = {"hours": billable, "unit_cost": hourly, "cost": money(total)}
            if hours < billable:
                breakdown["note"] = f"Minimum {fmt_qty(min_hours)} hours applies"

        return StrategyResult(
            pricing_model=pricing_model,
            breakdown=breakdown,
            total_cost_try=total,
            details={
                "make": offering.attr("make"),
                "model": offering.attr("model"),
                "vehicle_class": offering.attr("vehicle_class"),
                "with_driver": with_driver,
                "pax": pax,
                "days": request.days,
                "hours": request.hours,
            },
        )
