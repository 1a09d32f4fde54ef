"""Application factory for the FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) so
tests can build isolated instances.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from quiz_proxy.api.routes import health_router, relay_router
from quiz_proxy.api.routes.relay import close_relay_service
from quiz_proxy.core.config import settings
from quiz_proxy.core.exception_handlers import setup_exception_handlers
from quiz_proxy.core.logging import configure_logging
from quiz_proxy.core.middleware import request_id_middleware
from quiz_proxy.core.openapi import apply_openapi_customizations


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    await close_relay_service()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Quiz Proxy",
        description=(
            "Server-side proxy for the quiz app's calls to the Anthropic Messages "
            "API. Keeps the API key off the browser and limits each caller "
            "(X-Client-ID + client address) to a fixed number of requests per "
            "UTC day."
        ),
        version="0.1.0",
        debug=settings.app.debug,
        lifespan=lifespan,
    )

    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(relay_router)
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
