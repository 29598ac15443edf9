from __future__ import annotations

import math
from typing import Any, Dict, List, Optional

from rate_engine.domain.offerings import ServiceOffering, ServiceType
from rate_engine.domain.quotes import QuoteRequest, StrategyResult
from rate_engine.domain.rates import HotelRoomRate, RateSeason
from rate_engine.errors import bad_request
from rate_engine.services.pricing_strategies.base import (
    PricingStrategy,
    ensure_max_capacity,
    ensure_party,
    expect_rate,
)
from rate_engine.utils import money

DEFAULT_PAX = 2

# Child age bands (inclusive upper bound) -> rate field. Ages above the
# last band pay the adult double-occupancy price.
CHILD_BANDS = (
    (2, "child_price_0_to_2"),
    (5, "child_price_3_to_5"),
    (11, "child_price_6_to_11"),
)
DEFAULT_CHILD_BAND = "child_price_3_to_5"


def child_unit_price(rate: HotelRoomRate, age: Optional[int]) -> float:
    if age is None:
        return float(rate.child_price_3_to_5 or 0.0)
    for upper, field_name in CHILD_BANDS:
        if age <= upper:
            price = getattr(rate, field_name)
            if price is None:
                price = getattr(rate, DEFAULT_CHILD_BAND)
            return float(price or 0.0)
    return float(rate.price_per_person_double)


class HotelRoomStrategy(PricingStrategy):
    service_type = ServiceType.HOTEL_ROOM

    def sub_key(self, request: QuoteRequest) -> Optional[str]:
        return request.board_type.upper() if request.board_type else None

    def price(self, offering: ServiceOffering, rate: RateSeason, request: QuoteRequest) -> StrategyResult:
        rate = expect_rate(rate, HotelRoomRate)

        pax = request.pax or DEFAULT_PAX
        ages: List[int] = list(request.child_ages)
        children = request.children if request.children is not None else len(ages)
        nights = request.nights or 1

        ensure_party(pax, children)
        if ages and len(ages) != children:
            raise bad_request(
                "invalid_party",
                f"child_ages lists {len(ages)} ages for {children} children",
            )

        max_occupancy = offering.attr("max_occupancy")
        ensure_max_capacity(pax, max_occupancy, "room maximum capacity")

        if nights < rate.min_stay:
            raise bad_request(
                "min_stay_not_met",
                f"Minimum stay for this rate is {rate.min_stay} nights",
                nights=nights,
                min_stay=rate.min_stay,
            )

        adults = pax - children
        double = float(rate.price_per_person_double)
        adult_cost = adults * double * nights

        child_lines: List[Dict[str, Any]] = []
        child_cost = 0.0
        for age in ages or [None] * children:
            unit = child_unit_price(rate, age)
            child_cost += unit * nights
            child_lines.append({"age": age, "unit_cost": unit, "cost": money(unit * nights)})

        total = adult_cost + child_cost
        rooms = math.ceil(pax / int(max_occupancy)) if max_occupancy else 1

        breakdown: Dict[str, Any] = {
            "adults": {
                "quantity": adults,
                "nights": nights,
                "unit_cost": double,
                "cost": money(adult_cost),
            },
            "children": {
                "quantity": children,
                "nights": nights,
                "cost": money(child_cost),
                "items": child_lines,
            },
        }

        extras: Dict[str, Any] = {
            "price_per_person_double": double,
            "adult_cost_try": money(adult_cost),
            "child_cost_try": money(child_cost),
            "base_cost_try": money(total),
        }
        if children and not ages:
            extras["note"] = "Child ages not given: 3-5.99 age band applied to all children"

        return StrategyResult(
            pricing_model="PER_PERSON_NIGHT",
            breakdown=breakdown,
            total_cost_try=total,
            details={
                "hotel_name": offering.attr("hotel_name"),
                "room_type": offering.attr("room_type"),
                "board_type": rate.board_type,
                "nights": nights,
                "rooms": rooms,
                "adults": adults,
                "children": children,
                "child_ages": ages,
                "pax": pax,
            },
            pricing_extras=extras,
        )
