from __future__ import annotations

from dataclasses import asdict
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query

from rate_engine import config
from rate_engine.auth import get_current_user, require_roles
from rate_engine.db import get_db
from rate_engine.schemas_rates import (
    ExchangeLockIn,
    ExchangeRateCreateIn,
    ExchangeRateImportIn,
    ExchangeRateUpdateIn,
)
from rate_engine.services.exchange_rates import ExchangeRateService

router = APIRouter(prefix="/api/exchange-rates", tags=["exchange_rates"])
bookings_router = APIRouter(prefix="/api/bookings", tags=["exchange_rates"])

RATE_WRITERS = ["admin", "rate_manager"]


@router.get("")
async def list_exchange_rates(
    from_currency: Optional[str] = Query(None, alias="from"),
    to_currency: Optional[str] = Query(None, alias="to"),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    user: dict[str, Any] = Depends(get_current_user),
    db=Depends(get_db),
) -> dict[str, Any]:
    return await ExchangeRateService(db).list(
        user["tenant_id"],
        from_currency=from_currency,
        to_currency=to_currency,
        page=page,
        limit=limit,
    )


@router.get("/latest")
async def latest_exchange_rate(
    from_currency: str = Query(config.DEFAULT_FROM_CURRENCY, alias="from", min_length=3, max_length=3),
    to_currency: str = Query(config.DEFAULT_TO_CURRENCY, alias="to", min_length=3, max_length=3),
    user: dict[str, Any] = Depends(get_current_user),
    db=Depends(get_db),
) -> dict[str, Any]:
    fx = await ExchangeRateService(db).latest(user["tenant_id"], from_currency, to_currency)
    return asdict(fx)


@router.post("", status_code=201)
async def create_exchange_rate(
    payload: ExchangeRateCreateIn,
    user: dict[str, Any] = Depends(require_roles(RATE_WRITERS)),
    db=Depends(get_db),
) -> dict[str, Any]:
    fx = await ExchangeRateService(db).create(
        user["tenant_id"],
        rate=payload.rate,
        rate_date=payload.rate_date,
        from_currency=payload.from_currency,
        to_currency=payload.to_currency,
        source=payload.source,
    )
    return asdict(fx)


@router.post("/import")
async def import_exchange_rates(
    payload: ExchangeRateImportIn,
    user: dict[str, Any] = Depends(require_roles(RATE_WRITERS)),
    db=Depends(get_db),
) -> dict[str, Any]:
    return await ExchangeRateService(db).import_csv(user["tenant_id"], payload.csv_content)


@router.put("/{rate_id}")
async def update_exchange_rate(
    rate_id: int,
    payload: ExchangeRateUpdateIn,
    user: dict[str, Any] = Depends(require_roles(RATE_WRITERS)),
    db=Depends(get_db),
) -> dict[str, Any]:
    fx = await ExchangeRateService(db).update(
        user["tenant_id"], rate_id, payload.model_dump(exclude_unset=True)
    )
    return asdict(fx)


@router.delete("/{rate_id}")
async def delete_exchange_rate(
    rate_id: int,
    user: dict[str, Any] = Depends(require_roles(RATE_WRITERS)),
    db=Depends(get_db),
) -> dict[str, Any]:
    await ExchangeRateService(db).delete(user["tenant_id"], rate_id)
    return {"ok": True, "id": rate_id}


@bookings_router.post("/{booking_id}/exchange-lock")
async def lock_booking_exchange_rate(
    booking_id: int,
    payload: Optional[ExchangeLockIn] = None,
    user: dict[str, Any] = Depends(get_current_user),
    db=Depends(get_db),
) -> dict[str, Any]:
    payload = payload or ExchangeLockIn()
    return await ExchangeRateService(db).lock_for_booking(
        user["tenant_id"],
        booking_id,
        from_currency=payload.from_currency or config.DEFAULT_FROM_CURRENCY,
        to_currency=payload.to_currency or config.DEFAULT_TO_CURRENCY,
    )
