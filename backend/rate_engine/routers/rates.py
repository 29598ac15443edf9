from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, Query
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from rate_engine.auth import get_current_user, require_roles
from rate_engine.db import get_db
from rate_engine.domain.offerings import parse_service_type
from rate_engine.errors import bad_request
from rate_engine.schemas_rates import RATE_CREATE_SCHEMAS, RateSeasonUpdateIn
from rate_engine.services.rate_catalog import RateCatalogService

router = APIRouter(prefix="/api/rates", tags=["rates"])

RATE_WRITERS = ["admin", "rate_manager"]


@router.get("")
async def list_rates(
    service_offering_id: int = Query(..., ge=1),
    include_inactive: bool = Query(False),
    user: dict[str, Any] = Depends(get_current_user),
    db=Depends(get_db),
) -> dict[str, Any]:
    items = await RateCatalogService(db).list_rates(
        user["tenant_id"], service_offering_id, include_inactive=include_inactive
    )
    return {"items": items}


@router.post("/{service_type}", status_code=201)
async def create_rate(
    service_type: str,
    payload: dict[str, Any] = Body(...),
    user: dict[str, Any] = Depends(require_roles(RATE_WRITERS)),
    db=Depends(get_db),
) -> dict[str, Any]:
    category = parse_service_type(service_type.upper())
    if category is None:
        raise bad_request("unsupported_service_type", "Unsupported service type", service_type=service_type)

    schema = RATE_CREATE_SCHEMAS[category.value]
    try:
        data = schema.model_validate(payload)
    except ValidationError as exc:
        raise RequestValidationError(exc.errors())

    return await RateCatalogService(db).create_rate(user["tenant_id"], category, data.model_dump())


@router.patch("/{rate_id}")
async def update_rate(
    rate_id: int,
    payload: RateSeasonUpdateIn,
    user: dict[str, Any] = Depends(require_roles(RATE_WRITERS)),
    db=Depends(get_db),
) -> dict[str, Any]:
    return await RateCatalogService(db).update_rate(
        user["tenant_id"], rate_id, payload.model_dump(exclude_unset=True)
    )


@router.delete("/{rate_id}")
async def deactivate_rate(
    rate_id: int,
    user: dict[str, Any] = Depends(require_roles(RATE_WRITERS)),
    db=Depends(get_db),
) -> dict[str, Any]:
    return await RateCatalogService(db).deactivate_rate(user["tenant_id"], rate_id)
