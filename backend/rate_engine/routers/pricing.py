from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from rate_engine.auth import get_current_user
from rate_engine.db import get_db
from rate_engine.domain.quotes import QuoteRequest
from rate_engine.schemas_rates import QuoteRequestIn
from rate_engine.services.pricing_engine import PricingEngine


router = APIRouter(prefix="/api/pricing", tags=["pricing"])


@router.post("/quote")
async def quote(
    payload: QuoteRequestIn,
    user: dict[str, Any] = Depends(get_current_user),
    db=Depends(get_db),
) -> dict[str, Any]:
    request = QuoteRequest(
        service_offering_id=payload.service_offering_id,
        service_date=payload.service_date,
        pax=payload.pax,
        nights=payload.nights,
        days=payload.days,
        distance=payload.distance,
        hours=payload.hours,
        children=payload.children,
        child_ages=tuple(payload.child_ages),
        board_type=payload.board_type,
    )
    result = await PricingEngine(db).quote(user["tenant_id"], request)
    return result.to_dict()
