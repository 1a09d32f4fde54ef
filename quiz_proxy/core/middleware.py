"""Request correlation middleware.

Each request is handled with a request id bound in the logging context (the
caller's value from the configured header, or a new UUID) and ends with one
``http.request_completed`` line. For relay calls that line also carries the
caller hash and the quota left after the call, so per-caller usage can be
followed in the logs without querying the store.

Usage:
    app.middleware("http")(request_id_middleware)
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any

from fastapi import Request, Response

from quiz_proxy.core.config import settings
from quiz_proxy.core.identity import derive_identity, hash_identity
from quiz_proxy.core.logging import clear_request_id, set_request_id

logger = logging.getLogger(__name__)

RELAY_PREFIX = "/api/"


def completion_fields(request: Request, response: Response, duration_ms: float) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "method": request.method,
        "route": request.url.path,
        "status": response.status_code,
        "duration_ms": duration_ms,
    }
    if request.url.path.startswith(RELAY_PREFIX):
        identity = derive_identity(
            request.headers.get("X-Client-ID"),
            request.headers.get("X-Forwarded-For"),
        )
        fields["identity_hash"] = hash_identity(identity)
        remaining = response.headers.get("X-RateLimit-Remaining")
        if remaining is not None:
            fields["quota_remaining"] = int(remaining)
    return fields


async def request_id_middleware(request: Request, call_next) -> Response:
    """Bind a request id, time the request and echo both in response headers."""
    header_name = settings.log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())

    set_request_id(request_id)
    started = time.perf_counter()
    try:
        response: Response = await call_next(request)
        duration_ms = round((time.perf_counter() - started) * 1000, 2)
        logger.info("http.request_completed", extra=completion_fields(request, response, duration_ms))
    finally:
        clear_request_id()

    response.headers[header_name] = request_id
    response.headers["X-Request-Duration-ms"] = f"{duration_ms:.2f}"
    return response
