from __future__ import annotations

from quiz_proxy.api.routes.health import router as health_router
from quiz_proxy.api.routes.relay import router as relay_router

__all__ = ["health_router", "relay_router"]
