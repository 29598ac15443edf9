from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional, Type, TypeVar

from rate_engine.domain.offerings import ServiceOffering, ServiceType
from rate_engine.domain.quotes import QuoteRequest, StrategyResult
from rate_engine.domain.rates import RateSeason
from rate_engine.errors import bad_request

R = TypeVar("R", bound=RateSeason)


class PricingStrategy(ABC):
    """Prices one service category from an already resolved rate season."""

    service_type: ServiceType

    def sub_key(self, request: QuoteRequest) -> Optional[str]:
        return None

    @abstractmethod
    def price(self, offering: ServiceOffering, rate: RateSeason, request: QuoteRequest) -> StrategyResult:
        raise NotImplementedError


def fmt_qty(value: Any) -> str:
    """4.0 -> "4", 2.5 -> "2.5" (used in human-readable notes)."""
    number = float(value)
    return str(int(number)) if number.is_integer() else str(number)


def ensure_party(pax: int, children: int) -> None:
    if pax < 1:
        raise bad_request("invalid_party", "Pax must be at least 1", pax=pax)
    if children < 0 or children > pax:
        raise bad_request(
            "invalid_party",
            f"Children count ({children}) cannot exceed pax ({pax})",
            pax=pax,
            children=children,
        )


def ensure_max_capacity(pax: int, maximum: Optional[int], label: str) -> None:
    """Reject pax above `maximum`; `label` names the limit, e.g. "room maximum capacity"."""
    if maximum is None:
        return
    if pax > int(maximum):
        raise bad_request(
            "capacity_exceeded",
            f"Requested pax ({pax}) exceeds {label} ({int(maximum)})",
            pax=pax,
            maximum=int(maximum),
        )


def ensure_min_participants(pax: int, minimum: Optional[int]) -> None:
    if minimum is None:
        return
    if pax < int(minimum):
        raise bad_request(
            "participants_below_minimum",
            f"Requested participants ({pax}) is below minimum requirement ({int(minimum)})",
            pax=pax,
            minimum=int(minimum),
        )


def rate_incomplete(rate: RateSeason, message: str) -> Exception:
    return bad_request("rate_incomplete", message, rate_id=rate.id)


def expect_rate(rate: RateSeason, rate_type: Type[R]) -> R:
    """Narrow a resolved season to the variant a strategy prices."""
    if not isinstance(rate, rate_type):
        raise bad_request(
            "unsupported_service_type",
            f"Rate season {rate.id} is a {rate.service_type.value} rate, "
            f"expected {rate_type.service_type.value}",
            rate_id=rate.id,
        )
    return rate
