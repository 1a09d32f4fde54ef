"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured fields merged into the error body.
        headers: Optional response headers to send with the error.
    """

    code: str
    message: str
    details: dict[str, Any] | None = None
    headers: dict[str, str] | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class MethodNotAllowedAppError(AppError):
    """Raised for methods other than POST and OPTIONS on the relay."""


class RateLimitExceededAppError(AppError):
    """Raised when a caller has used up the daily quota."""


class UpstreamUnavailableAppError(AppError):
    """Raised when the upstream API cannot be reached at the transport level."""


class ConfigurationAppError(AppError):
    """Raised when required server-side configuration is missing."""


class StoreAppError(AppError):
    """Raised by usage store adapters; the relay logs and swallows it."""
