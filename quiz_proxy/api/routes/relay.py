from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Header, Request, Response

from quiz_proxy.adapters.llm.factory import create_upstream_client
from quiz_proxy.adapters.usage_store.factory import create_usage_store
from quiz_proxy.core.errors import ConfigurationAppError
from quiz_proxy.schemas.relay import ErrorResponse, RateLimitErrorResponse
from quiz_proxy.services.relay_service import RelayService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Relay"])

RELAY_PATH = "/api/anthropic"

CORS_PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, X-Client-ID",
}

_relay_service: RelayService | None = None


def get_relay_service() -> RelayService:
    """Return the process-wide relay service, building it on first use.

    Clients are created once and reused across requests. A missing upstream
    key does not stop the service from being built: the quota is still
    enforced and the relay reports the configuration error afterwards.
    """
    global _relay_service

    if _relay_service is None:
        try:
            upstream = create_upstream_client()
        except ConfigurationAppError as exc:
            logger.error("relay.upstream_unconfigured", extra={"error_code": exc.code})
            upstream = None

        _relay_service = RelayService(upstream=upstream, store=create_usage_store())
        logger.info(
            "relay.initialized",
            extra={
                "upstream_configured": upstream is not None,
                "store_configured": _relay_service.store is not None,
            },
        )
    return _relay_service


async def close_relay_service() -> None:
    """Close the HTTP clients held by the relay service, if it was built."""
    global _relay_service

    if _relay_service is None:
        return
    if _relay_service.upstream is not None:
        await _relay_service.upstream.aclose()
    if _relay_service.store is not None:
        await _relay_service.store.aclose()
    _relay_service = None


# Declared before the preflight route so a 405's Allow header lists POST first.
# Any other verb on this path is answered by the 405 handler in
# core.exception_handlers.
@router.post(
    RELAY_PATH,
    responses={
        200: {"description": "Upstream reply relayed verbatim."},
        405: {"model": ErrorResponse, "description": "Method other than POST or OPTIONS."},
        429: {"model": RateLimitErrorResponse, "description": "Daily quota reached."},
        502: {"model": ErrorResponse, "description": "Upstream API unreachable."},
    },
)
async def relay_messages(
    request: Request,
    service: Annotated[RelayService, Depends(get_relay_service)],
    x_client_id: Annotated[str | None, Header(alias="X-Client-ID")] = None,
    x_forwarded_for: Annotated[str | None, Header(alias="X-Forwarded-For")] = None,
) -> Response:
    """Forward a Messages API request body upstream under the daily quota.

    The JSON body is passed through byte-for-byte and the upstream status and
    body are relayed unchanged, with X-RateLimit-Limit and
    X-RateLimit-Remaining headers added.
    """
    body = await request.body()
    outcome = await service.relay(
        body,
        client_id=x_client_id,
        forwarded_for=x_forwarded_for,
    )
    return Response(
        content=outcome.content,
        status_code=outcome.status_code,
        media_type=outcome.content_type,
        headers=outcome.headers,
    )


@router.options(RELAY_PATH)
async def relay_preflight() -> Response:
    """Answer CORS preflight requests without touching the store or upstream."""
    return Response(status_code=200, headers=CORS_PREFLIGHT_HEADERS)
