"""Exchange rates and the booking exchange lock.

- Latest rate per (tenant, from, to) is the newest by rate_date, whatever
  the service date of the booking being priced ("latest wins").
- Latest lookups are read-through cached per pair and invalidated on every
  write touching that pair.
- lock_for_booking freezes the latest rate on a booking once; later rate
  changes never alter an existing lock.
"""

from __future__ import annotations

import csv
import io
import logging
import re
from dataclasses import asdict, dataclass
from datetime import date
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from rate_engine import config
from rate_engine.errors import conflict, not_found
from rate_engine.repositories.booking_repository import BookingRepository
from rate_engine.repositories.exchange_rate_repository import ExchangeRateRepository
from rate_engine.services.cache_service import cache_invalidate, cached
from rate_engine.utils import iso_day, serialize_doc

logger = logging.getLogger(__name__)

_ISO_DAY = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass(frozen=True)
class ExchangeRate:
    id: int
    tenant_id: str
    from_currency: str
    to_currency: str
    rate: float
    rate_date: str
    source: Optional[str] = None

    @classmethod
    def from_doc(cls, doc: Dict[str, Any]) -> "ExchangeRate":
        return cls(
            id=int(doc.get("_id", doc.get("id"))),
            tenant_id=str(doc.get("tenant_id") or ""),
            from_currency=str(doc["from_currency"]),
            to_currency=str(doc["to_currency"]),
            rate=float(doc["rate"]),
            rate_date=str(doc["rate_date"]),
            source=doc.get("source"),
        )


def _cache_key(tenant_id: str, from_currency: str, to_currency: str) -> str:
    return f"exchange_rate:{tenant_id}:{from_currency}:{to_currency}"


class ExchangeRateService:
    def __init__(self, db: AsyncIOMotorDatabase, *, cache_ttl_seconds: Optional[int] = None) -> None:
        self.db = db
        self._rates = ExchangeRateRepository(db)
        self._bookings = BookingRepository(db)
        self._ttl = cache_ttl_seconds if cache_ttl_seconds is not None else config.EXCHANGE_RATE_CACHE_TTL_SECONDS

    # ------------------------------------------------------------------
    # Latest rate
    # ------------------------------------------------------------------
    async def latest(self, tenant_id: str, from_currency: str, to_currency: str) -> ExchangeRate:
        from_currency = from_currency.upper()
        to_currency = to_currency.upper()

        async def _load() -> Dict[str, Any]:
            doc = await self._rates.find_latest(tenant_id, from_currency, to_currency)
            if not doc:
                raise not_found(
                    "exchange_rate_not_found",
                    f"No exchange rate found for {from_currency} to {to_currency}",
                )
            return asdict(ExchangeRate.from_doc(doc))

        value = await cached(
            self.db,
            _cache_key(tenant_id, from_currency, to_currency),
            _load,
            ttl_seconds=self._ttl,
            tenant_id=tenant_id,
        )
        return ExchangeRate(**value)

    async def _invalidate(self, tenant_id: str, from_currency: str, to_currency: str) -> None:
        await cache_invalidate(self.db, _cache_key(tenant_id, from_currency, to_currency), tenant_id)

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------
    async def list(
        self,
        tenant_id: str,
        *,
        from_currency: Optional[str] = None,
        to_currency: Optional[str] = None,
        page: int = 1,
        limit: int = 50,
    ) -> Dict[str, Any]:
        page = max(page, 1)
        items, total = await self._rates.list(
            tenant_id,
            from_currency=from_currency.upper() if from_currency else None,
            to_currency=to_currency.upper() if to_currency else None,
            skip=(page - 1) * limit,
            limit=limit,
        )
        return {
            "items": [serialize_doc(d) for d in items],
            "total": total,
            "page": page,
            "limit": limit,
        }

    async def create(
        self,
        tenant_id: str,
        *,
        rate: float,
        rate_date: date,
        from_currency: str = config.DEFAULT_FROM_CURRENCY,
        to_currency: str = config.DEFAULT_TO_CURRENCY,
        source: Optional[str] = None,
    ) -> ExchangeRate:
        from_currency = from_currency.upper()
        to_currency = to_currency.upper()
        day = iso_day(rate_date)

        if await self._rates.find_for_date(tenant_id, from_currency, to_currency, day):
            raise conflict(
                "exchange_rate_exists",
                "Exchange rate for this currency pair and date already exists",
                from_currency=from_currency,
                to_currency=to_currency,
                rate_date=day,
            )
        try:
            doc = await self._rates.insert(
                tenant_id,
                {
                    "from_currency": from_currency,
                    "to_currency": to_currency,
                    "rate": float(rate),
                    "rate_date": day,
                    "source": source,
                },
            )
        except DuplicateKeyError:
            raise conflict(
                "exchange_rate_exists",
                "Exchange rate for this currency pair and date already exists",
                from_currency=from_currency,
                to_currency=to_currency,
                rate_date=day,
            )

        await self._invalidate(tenant_id, from_currency, to_currency)
        logger.info("Exchange rate %s %s->%s %s recorded for tenant %s", doc["_id"], from_currency, to_currency, day, tenant_id)
        return ExchangeRate.from_doc(doc)

    async def update(self, tenant_id: str, rate_id: int, updates: Dict[str, Any]) -> ExchangeRate:
        existing = await self._rates.get(tenant_id, rate_id)
        if not existing:
            raise not_found("exchange_rate_not_found", f"Exchange rate with ID {rate_id} not found")

        changes: Dict[str, Any] = {}
        for key in ("from_currency", "to_currency"):
            if updates.get(key):
                changes[key] = str(updates[key]).upper()
        if updates.get("rate") is not None:
            changes["rate"] = float(updates["rate"])
        if updates.get("rate_date") is not None:
            changes["rate_date"] = iso_day(updates["rate_date"])
        if "source" in updates:
            changes["source"] = updates["source"]

        try:
            doc = await self._rates.update(tenant_id, rate_id, changes)
        except DuplicateKeyError:
            raise conflict(
                "exchange_rate_exists",
                "Exchange rate for this currency pair and date already exists",
            )
        if doc is None:
            raise not_found("exchange_rate_not_found", f"Exchange rate with ID {rate_id} not found")

        await self._invalidate(tenant_id, existing["from_currency"], existing["to_currency"])
        if (doc["from_currency"], doc["to_currency"]) != (existing["from_currency"], existing["to_currency"]):
            await self._invalidate(tenant_id, doc["from_currency"], doc["to_currency"])
        return ExchangeRate.from_doc(doc)

    async def delete(self, tenant_id: str, rate_id: int) -> None:
        existing = await self._rates.get(tenant_id, rate_id)
        if not existing:
            raise not_found("exchange_rate_not_found", f"Exchange rate with ID {rate_id} not found")
        await self._rates.delete(tenant_id, rate_id)
        await self._invalidate(tenant_id, existing["from_currency"], existing["to_currency"])

    async def import_csv(self, tenant_id: str, csv_content: str) -> Dict[str, Any]:
        """Import `from,to,rate,YYYY-MM-DD` rows (optional header line).

        Invalid lines are reported, rows for an already recorded pair/date
        are skipped, everything else is created.
        """

        rows: List[Dict[str, Any]] = []
        errors: List[str] = []

        reader = csv.reader(io.StringIO(csv_content.strip()))
        for i, parts in enumerate(reader):
            line_no = i + 1
            parts = [p.strip() for p in parts]
            if not parts or not any(parts):
                continue
            if i == 0 and parts[0].lower() in {"fromcurrency", "from_currency"}:
                continue
            if len(parts) != 4:
                errors.append(f"Line {line_no}: Expected 4 columns, got {len(parts)}")
                continue

            from_currency, to_currency, rate_str, rate_date = parts
            if len(from_currency) != 3 or len(to_currency) != 3:
                errors.append(f"Line {line_no}: Currency codes must be 3 characters")
                continue
            try:
                rate = float(rate_str)
            except ValueError:
                rate = 0.0
            if rate <= 0:
                errors.append(f"Line {line_no}: Invalid rate value: {rate_str}")
                continue
            if not _ISO_DAY.match(rate_date):
                errors.append(f"Line {line_no}: Invalid date format, expected YYYY-MM-DD: {rate_date}")
                continue
            try:
                date.fromisoformat(rate_date)
            except ValueError:
                errors.append(f"Line {line_no}: Invalid date: {rate_date}")
                continue

            rows.append(
                {
                    "from_currency": from_currency.upper(),
                    "to_currency": to_currency.upper(),
                    "rate": rate,
                    "rate_date": rate_date,
                }
            )

        imported: List[Dict[str, Any]] = []
        skipped: List[str] = []
        touched_pairs: set[tuple[str, str]] = set()

        for row in rows:
            label = f"{row['from_currency']}->{row['to_currency']} on {row['rate_date']}"
            if await self._rates.find_for_date(tenant_id, row["from_currency"], row["to_currency"], row["rate_date"]):
                skipped.append(f"{label} (already exists)")
                continue
            try:
                doc = await self._rates.insert(tenant_id, {**row, "source": "csv-import"})
            except DuplicateKeyError:
                skipped.append(f"{label} (already exists)")
                continue
            imported.append(serialize_doc(doc))
            touched_pairs.add((row["from_currency"], row["to_currency"]))

        for from_currency, to_currency in sorted(touched_pairs):
            await self._invalidate(tenant_id, from_currency, to_currency)

        logger.info(
            "Exchange rate import for tenant %s: %d imported, %d skipped, %d errors",
            tenant_id,
            len(imported),
            len(skipped),
            len(errors),
        )
        return {
            "summary": {
                "total": len(rows),
                "imported": len(imported),
                "skipped": len(skipped),
                "errors": len(errors),
            },
            "imported": imported,
            "skipped": skipped,
            "errors": errors,
        }

    # ------------------------------------------------------------------
    # Booking lock
    # ------------------------------------------------------------------
    async def lock_for_booking(
        self,
        tenant_id: str,
        booking_id: int,
        *,
        from_currency: str = config.DEFAULT_FROM_CURRENCY,
        to_currency: str = config.DEFAULT_TO_CURRENCY,
    ) -> Dict[str, Any]:
        """Freeze the latest known rate on a booking (idempotent per booking)."""

        booking = await self._bookings.get_by_id(tenant_id, booking_id)
        if not booking:
            raise not_found("booking_not_found", f"Booking with ID {booking_id} not found")

        if booking.get("locked_exchange_rate") is None:
            fx = await self.latest(tenant_id, from_currency, to_currency)
            stored = await self._bookings.set_exchange_lock(
                tenant_id,
                booking_id,
                {
                    "locked_exchange_rate": fx.rate,
                    "locked_exchange_rate_id": fx.id,
                    "locked_exchange_rate_date": fx.rate_date,
                    "locked_currency_pair": f"{fx.from_currency}/{fx.to_currency}",
                },
            )
            if stored:
                logger.info(
                    "Locked %s/%s rate %s (id=%s, %s) on booking %s",
                    fx.from_currency,
                    fx.to_currency,
                    fx.rate,
                    fx.id,
                    fx.rate_date,
                    booking_id,
                )
            booking = await self._bookings.get_by_id(tenant_id, booking_id)
            if not booking:
                raise not_found("booking_not_found", f"Booking with ID {booking_id} not found")

        return {
            "booking_id": int(booking["_id"]),
            "locked_exchange_rate": float(booking["locked_exchange_rate"]),
            "locked_exchange_rate_id": booking.get("locked_exchange_rate_id"),
            "locked_exchange_rate_date": booking.get("locked_exchange_rate_date"),
            "locked_currency_pair": booking.get("locked_currency_pair"),
            "exchange_locked_at": serialize_doc(booking.get("exchange_locked_at")),
        }
