"""Pydantic schemas for relay error bodies and health responses."""

from __future__ import annotations

from pydantic import BaseModel, Field


class RateLimitErrorDetail(BaseModel):
    """Body of the ``error`` object returned with HTTP 429."""

    type: str = Field("rate_limit_exceeded", description="Machine-readable error kind.")
    message: str = Field(..., description="Human-readable explanation.")
    limit: int = Field(..., description="Daily request limit per caller.")
    used: int = Field(..., description="Requests already counted today.")
    resets: str = Field("midnight UTC", description="When the quota resets.")
    request_id: str | None = Field(None, description="Correlation id of the request.")


class RateLimitErrorResponse(BaseModel):
    error: RateLimitErrorDetail


class ErrorDetail(BaseModel):
    """Generic ``error`` object for 405, 502 and 500 responses."""

    type: str = Field(..., description="Machine-readable error kind.")
    message: str = Field(..., description="Human-readable explanation.")
    request_id: str | None = Field(None, description="Correlation id of the request.")


class ErrorResponse(BaseModel):
    error: ErrorDetail


class HealthResponse(BaseModel):
    status: str = Field("ok", description="Always 'ok' while the process serves requests.")
