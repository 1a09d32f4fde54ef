"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before any import of ``quiz_proxy`` so the
module-level settings pick them up.
"""

import os

os.environ["APP_ENV"] = "testing"
os.environ.setdefault("ANTHROPIC_API_KEY", "sk-test-secret-key")
os.environ.pop("UPSTASH_REDIS_REST_URL", None)
os.environ.pop("UPSTASH_REDIS_REST_TOKEN", None)

import time
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from quiz_proxy.adapters.llm.base import AbstractUpstreamClient, UpstreamResponse
from quiz_proxy.adapters.usage_store.base import AbstractUsageStore
from quiz_proxy.api.routes.relay import get_relay_service
from quiz_proxy.core.app_factory import create_app
from quiz_proxy.core.errors import StoreAppError, UpstreamUnavailableAppError
from quiz_proxy.services.relay_service import RelayService

FIXED_NOW = datetime(2024, 5, 17, 15, 30, tzinfo=timezone.utc)
MESSAGE_REPLY = b'{"id":"msg_01","type":"message","content":[{"type":"text","text":"Q1"}]}'


class RecordingUpstream(AbstractUpstreamClient):
    """Upstream fake returning a preset reply and recording forwarded bodies."""

    def __init__(
        self,
        status_code: int = 200,
        content: bytes = MESSAGE_REPLY,
        content_type: str | None = "application/json",
        *,
        unreachable: bool = False,
    ) -> None:
        self.status_code = status_code
        self.content = content
        self.content_type = content_type
        self.unreachable = unreachable
        self.calls: list[bytes] = []

    async def forward(self, body: bytes) -> UpstreamResponse:
        self.calls.append(body)
        if self.unreachable:
            raise UpstreamUnavailableAppError(
                code="upstream_unreachable",
                message="Failed to reach API",
            )
        return UpstreamResponse(
            status_code=self.status_code,
            content=self.content,
            content_type=self.content_type,
        )


class InMemoryUsageStore(AbstractUsageStore):
    """Dictionary store mimicking Upstash GET / SET EX, with a settable clock."""

    def __init__(self, clock=time.time) -> None:
        self.clock = clock
        self.entries: dict[str, tuple[str, float]] = {}

    async def get(self, key: str) -> str | None:
        value, expires_at = self.entries.get(key, (None, 0.0))
        if value is None or expires_at <= self.clock():
            return None
        return value

    async def set(self, key: str, value: int | str, *, ex_seconds: int) -> None:
        self.entries[key] = (str(value), self.clock() + ex_seconds)

    def ttl(self, key: str) -> float | None:
        if key not in self.entries:
            return None
        return self.entries[key][1] - self.clock()


class FailingUsageStore(AbstractUsageStore):
    """Store whose reads and/or writes always fail."""

    def __init__(self, *, fail_reads: bool = True, fail_writes: bool = True) -> None:
        self.fail_reads = fail_reads
        self.fail_writes = fail_writes
        self.writes: list[tuple[str, int | str, int]] = []

    async def get(self, key: str) -> str | None:
        if self.fail_reads:
            raise StoreAppError(code="store_read_failure", message="connection refused")
        return None

    async def set(self, key: str, value: int | str, *, ex_seconds: int) -> None:
        if self.fail_writes:
            raise StoreAppError(code="store_write_failure", message="connection refused")
        self.writes.append((key, value, ex_seconds))


@pytest.fixture
def usage_store() -> InMemoryUsageStore:
    return InMemoryUsageStore()


@pytest.fixture
def upstream() -> RecordingUpstream:
    return RecordingUpstream()


@pytest.fixture
def make_client():
    """Build a TestClient whose relay uses the given upstream and store."""

    def _make(upstream: AbstractUpstreamClient, store: AbstractUsageStore | None) -> TestClient:
        app = create_app()
        service = RelayService(upstream=upstream, store=store, clock=lambda: FIXED_NOW)
        app.dependency_overrides[get_relay_service] = lambda: service
        return TestClient(app)

    return _make


@pytest.fixture
def client(make_client, upstream: RecordingUpstream, usage_store: InMemoryUsageStore) -> TestClient:
    return make_client(upstream, usage_store)


@pytest.fixture
def upstream_factory():
    return RecordingUpstream


@pytest.fixture
def failing_store_factory():
    return FailingUsageStore
