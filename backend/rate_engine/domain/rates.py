"""Rate season variants.

One dataclass per service category, all sharing the RateSeason header
(tenant, offering, inclusive season interval, active flag). The category is
the tag: RATE_TYPES maps a ServiceType to its variant and rate_from_doc picks
the variant from the stored `service_type`.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import date
from enum import Enum
from typing import Any, ClassVar, Dict, Optional, Type

from rate_engine.domain.offerings import ServiceType
from rate_engine.utils import to_date


class BoardType(str, Enum):
    RO = "RO"
    BB = "BB"
    HB = "HB"
    FB = "FB"
    AI = "AI"


class TransferPricingModel(str, Enum):
    ZONE_BASED = "ZONE_BASED"
    DISTANCE_BASED = "DISTANCE_BASED"


class GuidePricingModel(str, Enum):
    PER_DAY = "PER_DAY"
    PER_HOUR = "PER_HOUR"


class ActivityPricingModel(str, Enum):
    PER_PERSON = "PER_PERSON"


@dataclass(frozen=True)
class RateSeason:
    id: int
    tenant_id: str
    service_offering_id: int
    season_from: date
    season_to: date
    is_active: bool = True
    notes: Optional[str] = None

    service_type: ClassVar[ServiceType]

    @property
    def sub_key(self) -> Optional[str]:
        """Extra uniqueness dimension for the overlap invariant (hotel board type)."""
        return None

    def covers(self, day: date) -> bool:
        return self.season_from <= day <= self.season_to

    def range_label(self) -> str:
        return f"{self.season_from.isoformat()} - {self.season_to.isoformat()}"


@dataclass(frozen=True)
class HotelRoomRate(RateSeason):
    service_type: ClassVar[ServiceType] = ServiceType.HOTEL_ROOM

    board_type: str = BoardType.BB.value
    price_per_person_double: float = 0.0
    single_supplement: Optional[float] = None
    price_per_person_triple: Optional[float] = None
    child_price_0_to_2: Optional[float] = None
    child_price_3_to_5: Optional[float] = None
    child_price_6_to_11: Optional[float] = None
    min_stay: int = 1

    @property
    def sub_key(self) -> Optional[str]:
        return self.board_type


@dataclass(frozen=True)
class TransferRate(RateSeason):
    service_type: ClassVar[ServiceType] = ServiceType.TRANSFER

    pricing_model: str = TransferPricingModel.ZONE_BASED.value
    base_cost_try: float = 0.0
    included_km: Optional[float] = None
    included_hours: Optional[float] = None
    extra_km_try: Optional[float] = None
    extra_hour_try: Optional[float] = None


@dataclass(frozen=True)
class VehicleRate(RateSeason):
    service_type: ClassVar[ServiceType] = ServiceType.VEHICLE_HIRE

    daily_rate_try: float = 0.0
    daily_km_included: Optional[float] = None
    extra_km_try: Optional[float] = None
    driver_daily_try: Optional[float] = None
    hourly_rate_try: Optional[float] = None
    min_hours: Optional[float] = None


@dataclass(frozen=True)
class GuideRate(RateSeason):
    service_type: ClassVar[ServiceType] = ServiceType.GUIDE_SERVICE

    pricing_model: str = GuidePricingModel.PER_DAY.value
    day_cost_try: Optional[float] = None
    hour_cost_try: Optional[float] = None
    min_hours: Optional[float] = None


@dataclass(frozen=True)
class ActivityRate(RateSeason):
    service_type: ClassVar[ServiceType] = ServiceType.ACTIVITY

    pricing_model: str = ActivityPricingModel.PER_PERSON.value
    base_cost_try: float = 0.0
    child_discount_pct: Optional[float] = None


RATE_TYPES: Dict[ServiceType, Type[RateSeason]] = {
    ServiceType.HOTEL_ROOM: HotelRoomRate,
    ServiceType.TRANSFER: TransferRate,
    ServiceType.VEHICLE_HIRE: VehicleRate,
    ServiceType.GUIDE_SERVICE: GuideRate,
    ServiceType.ACTIVITY: ActivityRate,
}

# Categories whose seasons carry a pricing_model; hotels and vehicles have none.
PRICING_MODELS: Dict[ServiceType, Type[Enum]] = {
    ServiceType.TRANSFER: TransferPricingModel,
    ServiceType.GUIDE_SERVICE: GuidePricingModel,
    ServiceType.ACTIVITY: ActivityPricingModel,
}

_HEADER_FIELDS = {f.name for f in fields(RateSeason)}


def payload_fields(service_type: ServiceType) -> list[str]:
    """Names of the category-specific fields of a variant."""
    cls = RATE_TYPES[service_type]
    return [f.name for f in fields(cls) if f.name not in _HEADER_FIELDS]


def rate_from_doc(doc: Dict[str, Any]) -> RateSeason:
    service_type = ServiceType(str(doc["service_type"]))
    cls = RATE_TYPES[service_type]

    kwargs: Dict[str, Any] = {
        "id": int(doc["_id"]),
        "tenant_id": str(doc.get("tenant_id") or ""),
        "service_offering_id": int(doc["service_offering_id"]),
        "season_from": to_date(doc["season_from"]),
        "season_to": to_date(doc["season_to"]),
        "is_active": bool(doc.get("is_active", True)),
        "notes": doc.get("notes"),
    }
    for name in payload_fields(service_type):
        if doc.get(name) is not None:
            kwargs[name] = doc[name]
    return cls(**kwargs)


def sub_key_for(service_type: ServiceType, payload: Dict[str, Any]) -> Optional[str]:
    if service_type == ServiceType.HOTEL_ROOM:
        return payload.get("board_type") or BoardType.BB.value
    return None
