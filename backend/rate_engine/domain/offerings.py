from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class ServiceType(str, Enum):
    HOTEL_ROOM = "HOTEL_ROOM"
    TRANSFER = "TRANSFER"
    VEHICLE_HIRE = "VEHICLE_HIRE"
    GUIDE_SERVICE = "GUIDE_SERVICE"
    ACTIVITY = "ACTIVITY"


# Name of the category attribute block on a service_offerings document.
ATTRIBUTE_BLOCKS: Dict[ServiceType, str] = {
    ServiceType.HOTEL_ROOM: "hotel_room",
    ServiceType.TRANSFER: "transfer",
    ServiceType.VEHICLE_HIRE: "vehicle",
    ServiceType.GUIDE_SERVICE: "guide",
    ServiceType.ACTIVITY: "activity",
}


def parse_service_type(raw: Any) -> Optional[ServiceType]:
    try:
        return ServiceType(str(raw))
    except ValueError:
        return None


@dataclass(frozen=True)
class ServiceOffering:
    """Supplier catalog entry as seen by the pricing engine (read-only).

    `service_type` keeps the raw stored value so that documents with an
    unknown category can still be loaded and rejected at dispatch time.
    """

    id: int
    tenant_id: str
    service_type: str
    title: str
    supplier_name: str
    attributes: Dict[str, Any] = field(default_factory=dict)

    @property
    def category(self) -> Optional[ServiceType]:
        return parse_service_type(self.service_type)

    def attr(self, name: str, default: Any = None) -> Any:
        value = self.attributes.get(name)
        return default if value is None else value

    @classmethod
    def from_doc(cls, doc: Dict[str, Any]) -> "ServiceOffering":
        service_type = str(doc.get("service_type") or "")
        category = parse_service_type(service_type)
        block = ATTRIBUTE_BLOCKS.get(category) if category else None
        return cls(
            id=int(doc["_id"]),
            tenant_id=str(doc.get("tenant_id") or ""),
            service_type=service_type,
            title=str(doc.get("title") or ""),
            supplier_name=str(doc.get("supplier_name") or ""),
            attributes=dict(doc.get(block) or {}) if block else {},
        )
