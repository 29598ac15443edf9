from __future__ import annotations

from typing import Dict

from rate_engine.domain.offerings import ServiceType
from rate_engine.services.pricing_strategies.activity import ActivityStrategy
from rate_engine.services.pricing_strategies.base import PricingStrategy
from rate_engine.services.pricing_strategies.guide import GuideServiceStrategy
from rate_engine.services.pricing_strategies.hotel import HotelRoomStrategy
from rate_engine.services.pricing_strategies.transfer import TransferStrategy
from rate_engine.services.pricing_strategies.vehicle import VehicleHireStrategy


def default_strategies() -> Dict[ServiceType, PricingStrategy]:
    strategies = [
        HotelRoomStrategy(),
        TransferStrategy(),
        VehicleHireStrategy(),
        GuideServiceStrategy(),
        ActivityStrategy(),
    ]
    return {s.service_type: s for s in strategies}


__all__ = ["PricingStrategy", "default_strategies"]
