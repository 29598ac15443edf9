from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from fastapi import Depends, FastAPI
from starlette.middleware.cors import CORSMiddleware

ROOT_DIR = Path(__file__).parent

# Load .env only if exists (development fallback)
env_path = ROOT_DIR / ".env"
if env_path.exists():
    load_dotenv(env_path)

from rate_engine import config  # noqa: E402
from rate_engine.db import close_mongo, connect_mongo, get_db  # noqa: E402
from rate_engine.exception_handlers import register_exception_handlers  # noqa: E402
from rate_engine.indexes.rate_indexes import ensure_rate_indexes  # noqa: E402
from rate_engine.middleware.correlation_id import CorrelationIdMiddleware  # noqa: E402
from rate_engine.middleware.structured_logging_middleware import StructuredLoggingMiddleware  # noqa: E402
from rate_engine.routers.exchange_rates import bookings_router as booking_lock_router  # noqa: E402
from rate_engine.routers.exchange_rates import router as exchange_rates_router  # noqa: E402
from rate_engine.routers.offerings import router as offerings_router  # noqa: E402
from rate_engine.routers.pricing import router as pricing_router  # noqa: E402
from rate_engine.routers.rates import router as rates_router  # noqa: E402

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("rate-engine")

app = FastAPI(title=config.APP_NAME, version=config.APP_VERSION)

app.add_middleware(
    CORSMiddleware,
    allow_credentials=True,
    allow_origins=config.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)
# Added last = runs first: the access log sees the correlation id.
if config.ENABLE_REQUEST_LOGGING:
    app.add_middleware(StructuredLoggingMiddleware)
app.add_middleware(CorrelationIdMiddleware)

register_exception_handlers(app)

# Routers (/api prefix is on each router)
app.include_router(pricing_router)
app.include_router(offerings_router)
app.include_router(rates_router)
app.include_router(exchange_rates_router)
app.include_router(booking_lock_router)


@app.get("/api/health")
async def health(db=Depends(get_db)) -> dict[str, Any]:
    """Health check with database ping"""
    ok = False
    try:
        await db.command("ping")
        ok = True
    except Exception:
        logger.warning("Health check: database ping failed", exc_info=True)
    return {"ok": ok, "service": "rate-engine"}


@app.on_event("startup")
async def _startup() -> None:
    await connect_mongo()
    if config.ENSURE_INDEXES:
        await ensure_rate_indexes(await get_db())
    logger.info("Startup complete")


@app.on_event("shutdown")
async def _shutdown() -> None:
    await close_mongo()
    logger.info("Shutdown complete")
