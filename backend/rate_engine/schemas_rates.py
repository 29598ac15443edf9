from __future__ import annotations

from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator


BoardTypeIn = Literal["RO", "BB", "HB", "FB", "AI"]
ServiceTypeIn = Literal["HOTEL_ROOM", "TRANSFER", "VEHICLE_HIRE", "GUIDE_SERVICE", "ACTIVITY"]
Currency = str


# ---- Quote ----


class QuoteRequestIn(BaseModel):
    service_offering_id: int = Field(ge=1)
    service_date: date
    pax: Optional[int] = Field(default=None, ge=1, le=500)
    nights: Optional[int] = Field(default=None, ge=1, le=365)
    days: Optional[int] = Field(default=None, ge=1, le=365)
    distance: Optional[float] = Field(default=None, ge=0)
    hours: Optional[float] = Field(default=None, gt=0, le=24 * 30)
    children: Optional[int] = Field(default=None, ge=0, le=500)
    child_ages: list[int] = Field(default_factory=list, max_length=50)
    board_type: Optional[BoardTypeIn] = None


# ---- Offerings ----


class HotelRoomAttrs(BaseModel):
    hotel_name: str
    room_type: str
    max_occupancy: int = Field(ge=1, le=20)


class TransferAttrs(BaseModel):
    origin_zone: str
    dest_zone: str
    transfer_type: Optional[str] = None
    vehicle_class: Optional[str] = None
    max_passengers: int = Field(ge=1)


class VehicleAttrs(BaseModel):
    make: Optional[str] = None
    model: Optional[str] = None
    vehicle_class: Optional[str] = None
    with_driver: bool = False
    max_passengers: int = Field(ge=1)


class GuideAttrs(BaseModel):
    guide_name: str
    languages: list[str] = Field(default_factory=list)


class ActivityAttrs(BaseModel):
    operator_name: Optional[str] = None
    activity_type: Optional[str] = None
    duration_minutes: Optional[int] = Field(default=None, ge=1)
    min_participants: Optional[int] = Field(default=None, ge=1)
    max_participants: Optional[int] = Field(default=None, ge=1)


OFFERING_BLOCKS: dict[str, str] = {
    "HOTEL_ROOM": "hotel_room",
    "TRANSFER": "transfer",
    "VEHICLE_HIRE": "vehicle",
    "GUIDE_SERVICE": "guide",
    "ACTIVITY": "activity",
}


class ServiceOfferingCreateIn(BaseModel):
    service_type: ServiceTypeIn
    title: str = Field(min_length=1, max_length=200)
    supplier_name: str = Field(default="", max_length=200)
    hotel_room: Optional[HotelRoomAttrs] = None
    transfer: Optional[TransferAttrs] = None
    vehicle: Optional[VehicleAttrs] = None
    guide: Optional[GuideAttrs] = None
    activity: Optional[ActivityAttrs] = None

    @model_validator(mode="after")
    def _attributes_match_type(self) -> "ServiceOfferingCreateIn":
        block = OFFERING_BLOCKS[self.service_type]
        if getattr(self, block) is None:
            raise ValueError(f"{block} attributes are required for {self.service_type}")
        return self


# ---- Rate seasons ----


class RateSeasonBase(BaseModel):
    service_offering_id: int = Field(ge=1)
    season_from: date
    season_to: date
    notes: Optional[str] = Field(default=None, max_length=1000)


class HotelRoomRateCreateIn(RateSeasonBase):
    board_type: BoardTypeIn = "BB"
    price_per_person_double: float = Field(ge=0)
    single_supplement: Optional[float] = Field(default=None, ge=0)
    price_per_person_triple: Optional[float] = Field(default=None, ge=0)
    child_price_0_to_2: Optional[float] = Field(default=None, ge=0)
    child_price_3_to_5: Optional[float] = Field(default=None, ge=0)
    child_price_6_to_11: Optional[float] = Field(default=None, ge=0)
    min_stay: int = Field(default=1, ge=1, le=365)


class TransferRateCreateIn(RateSeasonBase):
    pricing_model: Literal["ZONE_BASED", "DISTANCE_BASED"] = "ZONE_BASED"
    base_cost_try: float = Field(ge=0)
    included_km: Optional[float] = Field(default=None, ge=0)
    included_hours: Optional[float] = Field(default=None, ge=0)
    extra_km_try: Optional[float] = Field(default=None, ge=0)
    extra_hour_try: Optional[float] = Field(default=None, ge=0)


class VehicleRateCreateIn(RateSeasonBase):
    daily_rate_try: float = Field(ge=0)
    daily_km_included: Optional[float] = Field(default=None, ge=0)
    extra_km_try: Optional[float] = Field(default=None, ge=0)
    driver_daily_try: Optional[float] = Field(default=None, ge=0)
    hourly_rate_try: Optional[float] = Field(default=None, ge=0)
    min_hours: Optional[float] = Field(default=None, gt=0)


class GuideRateCreateIn(RateSeasonBase):
    pricing_model: Literal["PER_DAY", "PER_HOUR"] = "PER_DAY"
    day_cost_try: Optional[float] = Field(default=None, ge=0)
    hour_cost_try: Optional[float] = Field(default=None, ge=0)
    min_hours: Optional[float] = Field(default=None, gt=0)


class ActivityRateCreateIn(RateSeasonBase):
    pricing_model: Literal["PER_PERSON"] = "PER_PERSON"
    base_cost_try: float = Field(ge=0)
    child_discount_pct: Optional[float] = Field(default=None, ge=0, le=100)


RATE_CREATE_SCHEMAS: dict[str, type[RateSeasonBase]] = {
    "HOTEL_ROOM": HotelRoomRateCreateIn,
    "TRANSFER": TransferRateCreateIn,
    "VEHICLE_HIRE": VehicleRateCreateIn,
    "GUIDE_SERVICE": GuideRateCreateIn,
    "ACTIVITY": ActivityRateCreateIn,
}


class RateSeasonUpdateIn(BaseModel):
    """Partial update; category fields not belonging to the season are ignored."""

    season_from: Optional[date] = None
    season_to: Optional[date] = None
    notes: Optional[str] = Field(default=None, max_length=1000)

    board_type: Optional[BoardTypeIn] = None
    price_per_person_double: Optional[float] = Field(default=None, ge=0)
    single_supplement: Optional[float] = Field(default=None, ge=0)
    price_per_person_triple: Optional[float] = Field(default=None, ge=0)
    child_price_0_to_2: Optional[float] = Field(default=None, ge=0)
    child_price_3_to_5: Optional[float] = Field(default=None, ge=0)
    child_price_6_to_11: Optional[float] = Field(default=None, ge=0)
    min_stay: Optional[int] = Field(default=None, ge=1, le=365)

    pricing_model: Optional[str] = None
    base_cost_try: Optional[float] = Field(default=None, ge=0)
    included_km: Optional[float] = Field(default=None, ge=0)
    included_hours: Optional[float] = Field(default=None, ge=0)
    extra_km_try: Optional[float] = Field(default=None, ge=0)
    extra_hour_try: Optional[float] = Field(default=None, ge=0)

    daily_rate_try: Optional[float] = Field(default=None, ge=0)
    daily_km_included: Optional[float] = Field(default=None, ge=0)
    driver_daily_try: Optional[float] = Field(default=None, ge=0)
    hourly_rate_try: Optional[float] = Field(default=None, ge=0)
    min_hours: Optional[float] = Field(default=None, gt=0)

    day_cost_try: Optional[float] = Field(default=None, ge=0)
    hour_cost_try: Optional[float] = Field(default=None, ge=0)

    child_discount_pct: Optional[float] = Field(default=None, ge=0, le=100)


# ---- Exchange rates ----


class ExchangeRateCreateIn(BaseModel):
    from_currency: Currency = Field(default="TRY", min_length=3, max_length=3)
    to_currency: Currency = Field(default="EUR", min_length=3, max_length=3)
    rate: float = Field(gt=0)
    rate_date: date
    source: Optional[str] = Field(default=None, max_length=100)


class ExchangeRateUpdateIn(BaseModel):
    from_currency: Optional[Currency] = Field(default=None, min_length=3, max_length=3)
    to_currency: Optional[Currency] = Field(default=None, min_length=3, max_length=3)
    rate: Optional[float] = Field(default=None, gt=0)
    rate_date: Optional[date] = None
    source: Optional[str] = Field(default=None, max_length=100)


class ExchangeRateImportIn(BaseModel):
    csv_content: str = Field(min_length=1)


class ExchangeLockIn(BaseModel):
    from_currency: Optional[Currency] = Field(default=None, min_length=3, max_length=3)
    to_currency: Optional[Currency] = Field(default=None, min_length=3, max_length=3)
