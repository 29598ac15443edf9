from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from rate_engine.auth import get_current_user, require_roles
from rate_engine.db import get_db
from rate_engine.domain.offerings import ATTRIBUTE_BLOCKS, ServiceOffering
from rate_engine.errors import not_found
from rate_engine.repositories.offering_repository import OfferingRepository
from rate_engine.schemas_rates import ServiceOfferingCreateIn

router = APIRouter(prefix="/api/offerings", tags=["offerings"])

RATE_WRITERS = ["admin", "rate_manager"]


def _offering_out(offering: ServiceOffering) -> dict[str, Any]:
    out: dict[str, Any] = {
        "id": offering.id,
        "tenant_id": offering.tenant_id,
        "service_type": offering.service_type,
        "title": offering.title,
        "supplier_name": offering.supplier_name,
    }
    if offering.category is not None:
        out[ATTRIBUTE_BLOCKS[offering.category]] = dict(offering.attributes)
    return out


@router.post("", status_code=201)
async def create_offering(
    payload: ServiceOfferingCreateIn,
    user: dict[str, Any] = Depends(require_roles(RATE_WRITERS)),
    db=Depends(get_db),
) -> dict[str, Any]:
    offering = await OfferingRepository(db).create_offering(
        user["tenant_id"], payload.model_dump(exclude_none=True)
    )
    return _offering_out(offering)


@router.get("/{offering_id}")
async def get_offering(
    offering_id: int,
    user: dict[str, Any] = Depends(get_current_user),
    db=Depends(get_db),
) -> dict[str, Any]:
    offering = await OfferingRepository(db).get_offering(user["tenant_id"], offering_id)
    if offering is None:
        raise not_found(
            "service_offering_not_found",
            "Service offering not found",
            service_offering_id=offering_id,
        )
    return _offering_out(offering)
