"""Global exception handlers for consistent error responses.

This module provides FastAPI exception handlers that intercept all errors
(domain and unexpected) and return consistent JSON responses with proper
HTTP status codes and traceability.

Design:
- AppError subclasses → mapped HTTP status (405, 429, 502, 500)
- Router-level 405 (any verb a path does not serve) → method_not_allowed
- Unexpected Exception → generic 500 (safety net)
- All responses include request_id for log correlation
"""

import logging

from fastapi import Request
from fastapi.exception_handlers import http_exception_handler as default_http_exception_handler
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from starlette.exceptions import HTTPException as StarletteHTTPException

from quiz_proxy.core.errors import (
    AppError,
    MethodNotAllowedAppError,
    RateLimitExceededAppError,
    UpstreamUnavailableAppError,
)
from quiz_proxy.core.logging import get_request_id

logger = logging.getLogger(__name__)


def status_code_for(exc: AppError) -> int:
    """Map a domain error to its HTTP status code.

    Args:
        exc: AppError instance (or subclass).

    Returns:
        HTTP status code; unknown AppError subclasses are treated as 500.
    """
    if isinstance(exc, MethodNotAllowedAppError):
        return 405
    if isinstance(exc, RateLimitExceededAppError):
        return 429
    if isinstance(exc, UpstreamUnavailableAppError):
        return 502
    return 500


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with consistent JSON format.

    The body is ``{"error": {"type": ..., "message": ..., <details>,
    "request_id": ...}}``. Details are merged at the top level of the error
    object so clients can read fields such as ``limit`` and ``used`` directly.

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with mapped status code, error body and any headers.
    """
    status_code = status_code_for(exc)

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_path": request.url.path,
            "request_id": get_request_id(),
        },
    )

    error_content = {
        "type": exc.code,
        "message": exc.message,
    }
    if exc.details:
        error_content.update(exc.details)
    error_content["request_id"] = get_request_id()

    return JSONResponse(
        status_code=status_code,
        content={"error": error_content},
        headers=exc.headers,
    )


def allowed_methods(request: Request) -> list[str]:
    """Methods served by the routes registered for the request path."""
    methods: list[str] = []
    for route in request.app.router.routes:
        if not isinstance(route, APIRoute) or not route.path_regex.match(request.url.path):
            continue
        for method in sorted(route.methods):
            if method not in methods:
                methods.append(method)
    return methods


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    """Render router-level 405s like every other domain error.

    Starlette raises these itself for verbs no route declares (TRACE,
    CONNECT, custom methods), so they never reach a route handler. Other
    HTTP exceptions keep FastAPI's default rendering.
    """
    if exc.status_code != 405:
        return await default_http_exception_handler(request, exc)

    error = MethodNotAllowedAppError(
        code="method_not_allowed",
        message="Method not allowed",
        headers={"Allow": ", ".join(allowed_methods(request))},
    )
    return await app_error_handler(request, error)


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs the exception type and message while returning a generic body, so no
    stack traces or upstream details reach the client.

    Args:
        request: FastAPI request object.
        exc: Exception instance (unexpected).

    Returns:
        JSONResponse with generic error.
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": get_request_id(),
        },
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "type": "internal_server_error",
                "message": "An unexpected error occurred. Please try again later.",
                "request_id": get_request_id(),
            }
        },
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with FastAPI app.

    Args:
        app: FastAPI application instance.
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(StarletteHTTPException)(http_error_handler)
    app.exception_handler(Exception)(general_exception_handler)
