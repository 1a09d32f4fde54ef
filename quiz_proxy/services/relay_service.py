"""Rate-limited relay to the upstream language-model API.

This service is the core of the proxy. For every POST it:
- Derives the caller identity and today's usage key
- Reads the usage counter (fail-open when the store is missing or failing)
- Rejects callers who reached the daily limit
- Forwards the body verbatim upstream
- Increments the counter after a successful upstream reply (fail-silent)
- Returns the upstream reply together with quota numbers

The read-then-set sequence is not atomic: concurrent requests from the same
identity may read the same count and both pass the check.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from quiz_proxy.adapters.llm.base import AbstractUpstreamClient
from quiz_proxy.adapters.usage_store.base import AbstractUsageStore
from quiz_proxy.core.errors import ConfigurationAppError, RateLimitExceededAppError, StoreAppError
from quiz_proxy.core.identity import derive_identity, hash_identity, usage_key

logger = logging.getLogger(__name__)

DAILY_LIMIT = 10
USAGE_TTL_SECONDS = 86400
RESETS_AT = "midnight UTC"


def rate_limit_headers(remaining: int) -> dict[str, str]:
    return {
        "X-RateLimit-Limit": str(DAILY_LIMIT),
        "X-RateLimit-Remaining": str(remaining),
    }


def remaining_after(used: int) -> int:
    """Quota left once the current request is counted, floored at zero."""
    return max(0, DAILY_LIMIT - used - 1)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class RelayOutcome:
    """Upstream reply plus the quota numbers to report to the caller."""

    status_code: int
    content: bytes
    content_type: str | None
    limit: int
    remaining: int

    @property
    def headers(self) -> dict[str, str]:
        return rate_limit_headers(self.remaining)


class RelayService:
    """Enforce the daily quota and relay requests upstream."""

    def __init__(
        self,
        *,
        upstream: AbstractUpstreamClient | None,
        store: AbstractUsageStore | None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        """Initialize the relay.

        Args:
            upstream: Client forwarding bodies to the model API, or None when
                the API key is missing (callers still count against the quota).
            store: Usage counter store, or None when unavailable (fail-open).
            clock: Returns the current timezone-aware UTC datetime.
        """
        self.upstream = upstream
        self.store = store
        self._clock = clock

    async def _read_usage(self, key: str, identity_hash: str) -> int:
        if self.store is None:
            return 0

        try:
            raw = await self.store.get(key)
        except StoreAppError as exc:
            logger.error(
                "usage_store.read_failed",
                extra={
                    "error_code": exc.code,
                    "error_msg": exc.message,
                    "identity_hash": identity_hash,
                },
            )
            return 0

        if raw is None:
            return 0
        try:
            return int(raw)
        except ValueError:
            logger.error(
                "usage_store.read_failed",
                extra={
                    "error_code": "store_read_failure",
                    "error_msg": "stored usage is not an integer",
                    "identity_hash": identity_hash,
                },
            )
            return 0

    async def _record_usage(self, key: str, used: int, identity_hash: str) -> None:
        if self.store is None:
            return

        try:
            await self.store.set(key, used + 1, ex_seconds=USAGE_TTL_SECONDS)
        except StoreAppError as exc:
            logger.error(
                "usage_store.write_failed",
                extra={
                    "error_code": exc.code,
                    "error_msg": exc.message,
                    "identity_hash": identity_hash,
                },
            )

    async def relay(
        self,
        body: bytes,
        *,
        client_id: str | None,
        forwarded_for: str | None,
    ) -> RelayOutcome:
        """Check the caller's quota, forward ``body`` and relay the reply.

        Args:
            body: Inbound request body, forwarded unmodified.
            client_id: X-Client-ID header value.
            forwarded_for: X-Forwarded-For header value.

        Returns:
            RelayOutcome carrying the upstream status, body and quota numbers.

        Raises:
            RateLimitExceededAppError: If the caller reached the daily limit.
            ConfigurationAppError: If no upstream client is configured.
            UpstreamUnavailableAppError: If the upstream cannot be reached.
        """
        identity = derive_identity(client_id, forwarded_for)
        identity_hash = hash_identity(identity)
        key = usage_key(identity, self._clock())

        used = await self._read_usage(key, identity_hash)

        if used >= DAILY_LIMIT:
            logger.warning(
                "relay.rate_limited",
                extra={
                    "identity_hash": identity_hash,
                    "limit": DAILY_LIMIT,
                    "used": used,
                },
            )
            raise RateLimitExceededAppError(
                code="rate_limit_exceeded",
                message=f"Daily limit of {DAILY_LIMIT} quizzes reached. Please try again tomorrow.",
                details={
                    "limit": DAILY_LIMIT,
                    "used": used,
                    "resets": RESETS_AT,
                },
                headers=rate_limit_headers(0),
            )

        if self.upstream is None:
            raise ConfigurationAppError(
                code="upstream_missing_api_key",
                message="Upstream API is not configured",
            )

        response = await self.upstream.forward(body)

        if response.is_success:
            await self._record_usage(key, used, identity_hash)

        remaining = remaining_after(used)
        logger.info(
            "relay.forwarded",
            extra={
                "identity_hash": identity_hash,
                "upstream_status": response.status_code,
                "counted": response.is_success,
                "used": used,
                "remaining": remaining,
            },
        )
        return RelayOutcome(
            status_code=response.status_code,
            content=response.content,
            content_type=response.content_type,
            limit=DAILY_LIMIT,
            remaining=remaining,
        )
