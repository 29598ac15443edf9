"""Rate season overlap detection.

Two active seasons of the same offering (and, for hotels, the same board
type) must never share a calendar day. "Starts inside", "ends inside" and
"contains" all reduce to the closed-interval intersection in seasons_overlap.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from rate_engine.domain.rates import RateSeason
from rate_engine.errors import AppError, conflict


@dataclass(frozen=True)
class SeasonCandidate:
    tenant_id: str
    service_offering_id: int
    season_from: date
    season_to: date
    sub_key: Optional[str] = None
    exclude_id: Optional[int] = None


def seasons_overlap(a_from: date, a_to: date, b_from: date, b_to: date) -> bool:
    return a_from <= b_to and a_to >= b_from


def find_overlap(candidate: SeasonCandidate, existing: Iterable[RateSeason]) -> Optional[RateSeason]:
    """Return the first (lowest id) active season colliding with the candidate."""

    for rate in sorted(existing, key=lambda r: r.id):
        if not rate.is_active:
            continue
        if rate.tenant_id != candidate.tenant_id:
            continue
        if rate.service_offering_id != candidate.service_offering_id:
            continue
        if candidate.exclude_id is not None and rate.id == candidate.exclude_id:
            continue
        if candidate.sub_key is not None and rate.sub_key != candidate.sub_key:
            continue
        if seasons_overlap(candidate.season_from, candidate.season_to, rate.season_from, rate.season_to):
            return rate
    return None


def overlap_error(candidate: SeasonCandidate, rate: RateSeason) -> AppError:
    suffix = f" for board type {candidate.sub_key}" if candidate.sub_key else ""
    return conflict(
        "rate_season_overlap",
        f"Rate season overlaps with existing rate (ID: {rate.id}, {rate.range_label()}){suffix}",
        conflicting_rate_id=rate.id,
        season_from=rate.season_from.isoformat(),
        season_to=rate.season_to.isoformat(),
    )


def ensure_no_overlap(candidate: SeasonCandidate, existing: Iterable[RateSeason]) -> None:
    """Raise a 409 AppError naming the colliding season, if any."""

    hit = find_overlap(candidate, existing)
    if hit is not None:
        raise overlap_error(candidate, hit)
