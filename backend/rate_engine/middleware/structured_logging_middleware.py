"""Structured JSON access log.

One line per request on the `structured_access` logger:
{request_id, tenant_id, user_id, path, method, status_code, latency_ms}

request_id is the correlation id when one is set. tenant_id and user_id are
read from the bearer token payload without verification (logging only).
"""
from __future__ import annotations

import base64
import binascii
import json
import logging
import time
import uuid
from typing import Any, Dict

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

logger = logging.getLogger("structured_access")


def _token_claims(request: Request) -> Dict[str, Any]:
    auth = request.headers.get("authorization", "")
    if not auth.lower().startswith("bearer "):
        return {}
    parts = auth.split(" ", 1)[1].split(".")
    if len(parts) < 2:
        return {}
    payload = parts[1]
    payload += "=" * (-len(payload) % 4)
    try:
        data = json.loads(base64.urlsafe_b64decode(payload))
    except (binascii.Error, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """Log structured JSON for every request."""

    async def dispatch(self, request: Request, call_next):
        request_id = getattr(request.state, "correlation_id", None) or str(uuid.uuid4())[:12]
        start = time.monotonic()

        claims = _token_claims(request)
        log_entry: Dict[str, Any] = {
            "request_id": request_id,
            "tenant_id": claims.get("tenant", ""),
            "user_id": claims.get("sub", ""),
            "path": request.url.path,
            "method": request.method,
        }

        try:
            response = await call_next(request)
        except Exception:
            log_entry["status_code"] = 500
            log_entry["latency_ms"] = round((time.monotonic() - start) * 1000, 2)
            logger.error(json.dumps(log_entry))
            raise

        log_entry["status_code"] = response.status_code
        log_entry["latency_ms"] = round((time.monotonic() - start) * 1000, 2)

        if response.status_code >= 500:
            logger.error(json.dumps(log_entry))
        elif response.status_code >= 400:
            logger.warning(json.dumps(log_entry))
        else:
            logger.info(json.dumps(log_entry))

        return response
