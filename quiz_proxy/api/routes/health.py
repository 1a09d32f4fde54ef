from __future__ import annotations

from fastapi import APIRouter

from quiz_proxy.schemas.relay import HealthResponse

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Health check endpoint.

    Used by load balancers and monitoring systems to determine service health.
    Does not contact the usage store or the upstream API.
    """

    return HealthResponse(status="ok")
