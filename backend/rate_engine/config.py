"""Application-level configuration for the rate engine.

Every value is env driven with a safe default so that local runs and tests
work without any environment set up.
"""

from __future__ import annotations

import os


def _env_flag(name: str, default: bool = True) -> bool:
    """Read a boolean-like flag from environment.

    Accepted falsy values: "0", "false", "off", "no" (case-insensitive).
    Anything else (or unset) falls back to `default`.
    """

    raw = os.environ.get(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in {"0", "false", "off", "no"}:
        return False
    if value in {"1", "true", "on", "yes"}:
        return True
    return default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


# Application constants
API_PREFIX = "/api"
APP_NAME = "Tour Rate Engine API"
APP_VERSION = "1.0.0"
CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*").split(",")

# Settlement currency of supplier rate seasons (all *_try amounts)
SETTLEMENT_CURRENCY = "TRY"

# Exchange lock defaults (quotation -> booking)
DEFAULT_FROM_CURRENCY = os.environ.get("DEFAULT_FROM_CURRENCY", "TRY").upper()
DEFAULT_TO_CURRENCY = os.environ.get("DEFAULT_TO_CURRENCY", "EUR").upper()
EXCHANGE_RATE_CACHE_TTL_SECONDS: int = _env_int("EXCHANGE_RATE_CACHE_TTL_SECONDS", 3600)

# Upper bound for a single rate season; every covered day is claimed in
# rate_season_days so this also bounds the write fan-out.
MAX_SEASON_DAYS: int = _env_int("MAX_SEASON_DAYS", 731)

# Feature flags
ENSURE_INDEXES: bool = _env_flag("ENSURE_INDEXES", default=True)
ENABLE_REQUEST_LOGGING: bool = _env_flag("ENABLE_REQUEST_LOGGING", default=True)
