"""Upstash Redis REST usage store.

Upstash exposes Redis commands over HTTPS: a command is POSTed to the base
URL as a JSON array (``["GET", "key"]``) with a bearer token, and the reply
is ``{"result": ...}`` on success or ``{"error": "..."}`` on failure.
"""

from __future__ import annotations

from typing import Any

import httpx

from quiz_proxy.adapters.usage_store.base import AbstractUsageStore
from quiz_proxy.core.errors import StoreAppError


class UpstashRestUsageStore(AbstractUsageStore):
    """Usage store backed by the Upstash Redis REST API."""

    def __init__(
        self,
        url: str,
        token: str,
        *,
        timeout_seconds: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the REST client.

        Args:
            url: Upstash REST endpoint (e.g. https://xxx.upstash.io).
            token: Upstash REST bearer token.
            timeout_seconds: Timeout for a single command.
            transport: Optional httpx transport (used by tests).
        """
        self._client = httpx.AsyncClient(
            base_url=url.rstrip("/"),
            headers={"Authorization": f"Bearer {token}"},
            timeout=timeout_seconds,
            transport=transport,
        )

    async def _command(self, *args: Any, error_code: str) -> Any:
        """Execute a single Redis command and return its ``result``.

        Raises:
            StoreAppError: On transport errors, non-2xx replies, or error replies.
        """
        command = [str(arg) for arg in args]
        try:
            response = await self._client.post("/", json=command)
        except httpx.HTTPError as exc:
            raise StoreAppError(
                code=error_code,
                message=f"Usage store request failed: {type(exc).__name__}",
                details={"command": command[0]},
            ) from exc

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if response.is_error or not isinstance(payload, dict) or "error" in payload:
            reason = payload.get("error") if isinstance(payload, dict) else None
            raise StoreAppError(
                code=error_code,
                message=f"Usage store returned an error: {reason or response.status_code}",
                details={"command": command[0], "http_status": response.status_code},
            )

        return payload.get("result")

    async def get(self, key: str) -> str | None:
        result = await self._command("GET", key, error_code="store_read_failure")
        if result is None:
            return None
        return str(result)

    async def set(self, key: str, value: int | str, *, ex_seconds: int) -> None:
        await self._command(
            "SET", key, value, "EX", ex_seconds, error_code="store_write_failure"
        )

    async def aclose(self) -> None:
        await self._client.aclose()
