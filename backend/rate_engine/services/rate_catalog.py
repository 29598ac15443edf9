"""Rate season write path.

Every create / update runs the application-level overlap check first (for a
readable 409 naming the colliding season) and then claims the covered days
in rate_season_days. The unique index on those claims is what actually
serialises concurrent writers: the loser of a race gets SeasonDayTaken and
is turned into the same 409.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from rate_engine import config
from rate_engine.domain.offerings import ServiceType
from rate_engine.domain.rates import PRICING_MODELS, RateSeason, payload_fields, sub_key_for
from rate_engine.errors import AppError, bad_request, conflict, not_found
from rate_engine.repositories.base_repository import next_sequence
from rate_engine.repositories.offering_repository import OfferingRepository
from rate_engine.repositories.rate_repository import RateRepository, SeasonDayTaken
from rate_engine.services.rate_overlap import SeasonCandidate, ensure_no_overlap, overlap_error
from rate_engine.utils import days_inclusive, iso_day, serialize_doc, to_date

logger = logging.getLogger(__name__)


def validate_season_range(season_from: date, season_to: date) -> None:
    if season_from >= season_to:
        raise bad_request(
            "invalid_season_range",
            "Season start date must be before end date",
            season_from=season_from.isoformat(),
            season_to=season_to.isoformat(),
        )
    length = (season_to - season_from).days + 1
    if length > config.MAX_SEASON_DAYS:
        raise bad_request(
            "invalid_season_range",
            f"Season may cover at most {config.MAX_SEASON_DAYS} days",
            days=length,
        )


def validate_pricing_model(service_type: ServiceType, pricing_model: str) -> None:
    allowed = [m.value for m in PRICING_MODELS.get(service_type, ())]
    if pricing_model not in allowed:
        raise bad_request(
            "invalid_pricing_model",
            f"Pricing model {pricing_model} is not valid for {service_type.value} rates",
            pricing_model=pricing_model,
            allowed=allowed,
        )


def rate_to_dict(rate: RateSeason) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "id": rate.id,
        "tenant_id": rate.tenant_id,
        "service_offering_id": rate.service_offering_id,
        "service_type": rate.service_type.value,
        "season_from": rate.season_from.isoformat(),
        "season_to": rate.season_to.isoformat(),
        "is_active": rate.is_active,
        "notes": rate.notes,
    }
    for name in payload_fields(rate.service_type):
        out[name] = getattr(rate, name)
    return serialize_doc(out)


class RateCatalogService:
    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self.db = db
        self._rates = RateRepository(db)
        self._offerings = OfferingRepository(db)

    async def list_rates(
        self,
        tenant_id: str,
        service_offering_id: int,
        *,
        include_inactive: bool = False,
    ) -> List[Dict[str, Any]]:
        rates = await self._rates.list_for_offering(
            tenant_id, service_offering_id, include_inactive=include_inactive
        )
        return [rate_to_dict(r) for r in rates]

    async def _conflict_for_day(self, candidate: SeasonCandidate, day: str) -> AppError:
        holder = await self._rates.get_day_holder(
            candidate.tenant_id, candidate.service_offering_id, candidate.sub_key, day
        )
        if holder is not None:
            return overlap_error(candidate, holder)
        # Holder went away between the failed claim and this lookup.
        return conflict(
            "rate_season_overlap",
            f"Rate season overlaps with another rate on {day}",
            day=day,
        )

    async def _ensure_free(self, candidate: SeasonCandidate) -> None:
        existing = await self._rates.find_overlapping(
            candidate.tenant_id,
            candidate.service_offering_id,
            candidate.season_from,
            candidate.season_to,
            sub_key=candidate.sub_key,
            exclude_id=candidate.exclude_id,
        )
        ensure_no_overlap(candidate, existing)

    async def create_rate(
        self,
        tenant_id: str,
        service_type: ServiceType,
        payload: Dict[str, Any],
    ) -> Dict[str, Any]:
        offering_id = int(payload["service_offering_id"])
        offering = await self._offerings.get_offering(tenant_id, offering_id)
        if offering is None:
            raise not_found(
                "service_offering_not_found",
                "Service offering not found",
                service_offering_id=offering_id,
            )
        if offering.category != service_type:
            raise bad_request(
                "unsupported_service_type",
                f"Service offering {offering_id} is {offering.service_type}, not {service_type.value}",
            )

        season_from = to_date(payload["season_from"])
        season_to = to_date(payload["season_to"])
        validate_season_range(season_from, season_to)
        if payload.get("pricing_model") is not None and service_type in PRICING_MODELS:
            validate_pricing_model(service_type, str(payload["pricing_model"]))

        sub_key = sub_key_for(service_type, payload)
        candidate = SeasonCandidate(
            tenant_id=tenant_id,
            service_offering_id=offering_id,
            season_from=season_from,
            season_to=season_to,
            sub_key=sub_key,
        )
        await self._ensure_free(candidate)

        rate_id = await next_sequence(self.db, "rate_seasons")
        try:
            await self._rates.claim_days(
                tenant_id, offering_id, sub_key, days_inclusive(season_from, season_to), rate_id
            )
        except SeasonDayTaken as exc:
            raise await self._conflict_for_day(candidate, exc.day)

        doc: Dict[str, Any] = {
            "_id": rate_id,
            "tenant_id": tenant_id,
            "service_offering_id": offering_id,
            "service_type": service_type.value,
            "season_from": iso_day(season_from),
            "season_to": iso_day(season_to),
            "is_active": True,
            "notes": payload.get("notes"),
        }
        for name in payload_fields(service_type):
            if payload.get(name) is not None:
                doc[name] = payload[name]
        if sub_key is not None:
            doc["board_type"] = sub_key

        try:
            rate = await self._rates.insert(doc)
        except Exception:
            await self._rates.release_days(rate_id)
            raise

        logger.info(
            "Created %s rate season %s for offering %s (%s)",
            service_type.value,
            rate.id,
            offering_id,
            rate.range_label(),
        )
        return rate_to_dict(rate)

    async def _get_or_404(self, tenant_id: str, rate_id: int) -> RateSeason:
        rate = await self._rates.get(tenant_id, rate_id)
        if rate is None:
            raise not_found("rate_season_not_found", f"Rate season with ID {rate_id} not found")
        return rate

    async def update_rate(self, tenant_id: str, rate_id: int, updates: Dict[str, Any]) -> Dict[str, Any]:
        current = await self._get_or_404(tenant_id, rate_id)
        service_type = current.service_type

        allowed = set(payload_fields(service_type)) | {"season_from", "season_to", "notes"}
        changes: Dict[str, Any] = {k: v for k, v in updates.items() if k in allowed and v is not None}
        if "notes" in updates and updates["notes"] is None:
            changes["notes"] = None

        season_from = to_date(changes.get("season_from", current.season_from))
        season_to = to_date(changes.get("season_to", current.season_to))
        if "pricing_model" in changes:
            validate_pricing_model(service_type, str(changes["pricing_model"]))
        validate_season_range(season_from, season_to)
        changes["season_from"] = iso_day(season_from)
        changes["season_to"] = iso_day(season_to)

        if service_type == ServiceType.HOTEL_ROOM:
            new_sub_key: Optional[str] = str(changes.get("board_type") or current.sub_key)
            changes["board_type"] = new_sub_key
        else:
            new_sub_key = None

        if current.is_active:
            candidate = SeasonCandidate(
                tenant_id=tenant_id,
                service_offering_id=current.service_offering_id,
                season_from=season_from,
                season_to=season_to,
                sub_key=new_sub_key,
                exclude_id=current.id,
            )
            await self._ensure_free(candidate)

            old_days = set(days_inclusive(current.season_from, current.season_to))
            new_days = set(days_inclusive(season_from, season_to))
            same_key = new_sub_key == current.sub_key
            to_claim = sorted(new_days - old_days) if same_key else sorted(new_days)
            to_release = sorted(old_days - new_days) if same_key else sorted(old_days)

            try:
                await self._rates.claim_days(
                    tenant_id, current.service_offering_id, new_sub_key, to_claim, current.id
                )
            except SeasonDayTaken as exc:
                raise await self._conflict_for_day(candidate, exc.day)

            rate = await self._rates.update(tenant_id, rate_id, changes)
            if to_release:
                await self._rates.release_days(current.id, sub_key=current.sub_key, days=to_release)
        else:
            rate = await self._rates.update(tenant_id, rate_id, changes)

        if rate is None:
            raise not_found("rate_season_not_found", f"Rate season with ID {rate_id} not found")
        logger.info("Updated rate season %s (%s)", rate.id, rate.range_label())
        return rate_to_dict(rate)

    async def deactivate_rate(self, tenant_id: str, rate_id: int) -> Dict[str, Any]:
        """Soft delete: the season stays on record but no longer prices or blocks days."""

        current = await self._get_or_404(tenant_id, rate_id)
        rate = await self._rates.update(tenant_id, rate_id, {"is_active": False})
        await self._rates.release_days(current.id)
        if rate is None:
            raise not_found("rate_season_not_found", f"Rate season with ID {rate_id} not found")
        logger.info("Deactivated rate season %s", rate_id)
        return rate_to_dict(rate)
