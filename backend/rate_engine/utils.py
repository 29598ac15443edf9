from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Any, Union

from bson import ObjectId


DateLike = Union[date, datetime, str]


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def serialize_doc(doc: Any) -> Any:
    """Recursively convert MongoDB docs into JSON-serializable structures."""
    if doc is None:
        return None

    if isinstance(doc, ObjectId):
        return str(doc)

    if isinstance(doc, datetime):
        return doc.isoformat()

    if isinstance(doc, date):
        return doc.isoformat()

    if isinstance(doc, list):
        return [serialize_doc(x) for x in doc]

    if isinstance(doc, dict):
        out: dict[str, Any] = {}
        for k, v in doc.items():
            if k == "_id":
                out["id"] = serialize_doc(v)
            else:
                out[k] = serialize_doc(v)
        return out

    return doc


def to_date(value: DateLike) -> date:
    """Normalise a date, datetime or YYYY-MM-DD(THH:MM...) string to a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def iso_day(value: DateLike) -> str:
    """Rate seasons are stored as YYYY-MM-DD strings (lexicographic == chronological)."""
    return to_date(value).isoformat()


def days_inclusive(start: DateLike, end: DateLike) -> list[str]:
    """Inclusive start, inclusive end (rate season days)."""
    s = to_date(start)
    e = to_date(end)
    out: list[str] = []
    cur = s
    while cur <= e:
        out.append(cur.isoformat())
        cur += timedelta(days=1)
    return out


def money(v: float) -> float:
    return round(float(v), 2)
