from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class QuoteRequest:
    service_offering_id: int
    service_date: date
    pax: Optional[int] = None
    nights: Optional[int] = None
    days: Optional[int] = None
    distance: Optional[float] = None
    hours: Optional[float] = None
    children: Optional[int] = None
    child_ages: Tuple[int, ...] = ()
    board_type: Optional[str] = None


@dataclass(frozen=True)
class StrategyResult:
    """What a category strategy computes; the engine wraps it into a QuoteResult."""

    pricing_model: str
    breakdown: Dict[str, Any]
    total_cost_try: float
    details: Dict[str, Any]
    pricing_extras: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class QuoteResult:
    service_offering_id: int
    service_type: str
    service_title: str
    supplier: str
    service_date: str
    details: Dict[str, Any]
    pricing: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "service_offering_id": self.service_offering_id,
            "service_type": self.service_type,
            "service_title": self.service_title,
            "supplier": self.supplier,
            "service_date": self.service_date,
            "details": copy.deepcopy(self.details),
            "pricing": copy.deepcopy(self.pricing),
        }
