"""Unit tests for the relay service."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import pytest

from quiz_proxy.core.errors import (
    ConfigurationAppError,
    RateLimitExceededAppError,
    UpstreamUnavailableAppError,
)
from quiz_proxy.services.relay_service import (
    DAILY_LIMIT,
    USAGE_TTL_SECONDS,
    RelayService,
    remaining_after,
)

BODY = b'{"messages":[]}'


def _service(upstream, store, now: datetime | None = None) -> RelayService:
    fixed = now or datetime(2024, 5, 17, 23, 59, 59, tzinfo=timezone.utc)
    return RelayService(upstream=upstream, store=store, clock=lambda: fixed)


@pytest.mark.parametrize(
    "used, expected",
    [(0, 9), (4, 5), (9, 0), (10, 0), (42, 0)],
)
def test_remaining_after_is_floored_at_zero(used: int, expected: int) -> None:
    assert remaining_after(used) == expected


@pytest.mark.asyncio
async def test_successful_relay_counts_usage(upstream, usage_store) -> None:
    service = _service(upstream, usage_store)

    outcome = await service.relay(BODY, client_id="abc", forwarded_for="9.9.9.9")

    assert outcome.status_code == 200
    assert outcome.limit == DAILY_LIMIT
    assert outcome.remaining == 9
    assert outcome.headers == {"X-RateLimit-Limit": "10", "X-RateLimit-Remaining": "9"}
    assert await usage_store.get("usage:abc:9.9.9.9:2024-05-17") == "1"


@pytest.mark.asyncio
async def test_usage_key_follows_utc_date(upstream, usage_store) -> None:
    service = _service(upstream, usage_store, now=datetime(2024, 5, 18, 0, 0, 1, tzinfo=timezone.utc))
    await usage_store.set("usage:abc:9.9.9.9:2024-05-17", 10, ex_seconds=USAGE_TTL_SECONDS)

    outcome = await service.relay(BODY, client_id="abc", forwarded_for="9.9.9.9")

    assert outcome.status_code == 200
    assert await usage_store.get("usage:abc:9.9.9.9:2024-05-18") == "1"


@pytest.mark.asyncio
async def test_limit_reached_raises_with_headers(upstream, usage_store) -> None:
    service = _service(upstream, usage_store)
    await usage_store.set("usage:abc:9.9.9.9:2024-05-17", 10, ex_seconds=USAGE_TTL_SECONDS)

    with pytest.raises(RateLimitExceededAppError) as exc_info:
        await service.relay(BODY, client_id="abc", forwarded_for="9.9.9.9")

    exc = exc_info.value
    assert exc.code == "rate_limit_exceeded"
    assert exc.details == {"limit": 10, "used": 10, "resets": "midnight UTC"}
    assert exc.headers == {"X-RateLimit-Limit": "10", "X-RateLimit-Remaining": "0"}
    assert upstream.calls == []


@pytest.mark.asyncio
async def test_unreachable_upstream_propagates_and_skips_write(upstream_factory, usage_store) -> None:
    service = _service(upstream_factory(unreachable=True), usage_store)

    with pytest.raises(UpstreamUnavailableAppError):
        await service.relay(BODY, client_id="abc", forwarded_for="9.9.9.9")

    assert await usage_store.get("usage:abc:9.9.9.9:2024-05-17") is None


@pytest.mark.asyncio
async def test_store_failures_are_logged_not_raised(upstream, failing_store_factory, caplog) -> None:
    service = _service(upstream, failing_store_factory())

    with caplog.at_level(logging.ERROR, logger="quiz_proxy.services.relay_service"):
        outcome = await service.relay(BODY, client_id="abc", forwarded_for="9.9.9.9")

    assert outcome.status_code == 200
    assert outcome.remaining == 9
    messages = [record.getMessage() for record in caplog.records]
    assert "usage_store.read_failed" in messages
    assert "usage_store.write_failed" in messages


@pytest.mark.asyncio
async def test_logs_hash_identity_instead_of_raw_values(upstream, usage_store, caplog) -> None:
    service = _service(upstream, usage_store)

    with caplog.at_level(logging.INFO, logger="quiz_proxy.services.relay_service"):
        await service.relay(BODY, client_id="secret-client", forwarded_for="203.0.113.7")

    record = next(r for r in caplog.records if r.getMessage() == "relay.forwarded")
    assert len(record.identity_hash) == 16
    assert "secret-client" not in caplog.text
    assert "203.0.113.7" not in caplog.text



@pytest.mark.asyncio
async def test_quota_is_enforced_before_missing_upstream_is_reported(usage_store) -> None:
    service = _service(None, usage_store)
    await usage_store.set("usage:abc:9.9.9.9:2024-05-17", 10, ex_seconds=USAGE_TTL_SECONDS)

    with pytest.raises(RateLimitExceededAppError):
        await service.relay(BODY, client_id="abc", forwarded_for="9.9.9.9")


@pytest.mark.asyncio
async def test_missing_upstream_raises_configuration_error_without_counting(usage_store) -> None:
    service = _service(None, usage_store)

    with pytest.raises(ConfigurationAppError) as exc_info:
        await service.relay(BODY, client_id="abc", forwarded_for="9.9.9.9")

    assert exc_info.value.code == "upstream_missing_api_key"
    assert await usage_store.get("usage:abc:9.9.9.9:2024-05-17") is None
