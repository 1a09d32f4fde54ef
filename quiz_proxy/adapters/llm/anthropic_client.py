"""Anthropic Messages API passthrough client."""

from __future__ import annotations

import logging

import httpx

from quiz_proxy.adapters.llm.base import AbstractUpstreamClient, UpstreamResponse
from quiz_proxy.core.errors import UpstreamUnavailableAppError

logger = logging.getLogger(__name__)


class AnthropicMessagesClient(AbstractUpstreamClient):
    """Forward request bodies to the Anthropic Messages endpoint verbatim.

    Uses a shared ``httpx.AsyncClient``. The API key is attached here and
    nowhere else; it is never read from, or echoed to, the inbound request.
    """

    def __init__(
        self,
        api_key: str,
        *,
        api_url: str = "https://api.anthropic.com/v1/messages",
        api_version: str = "2023-06-01",
        timeout_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the async HTTP client.

        Args:
            api_key: Server-held Anthropic API key.
            api_url: Messages endpoint URL.
            api_version: Value for the anthropic-version header.
            timeout_seconds: Request timeout in seconds; None disables it.
            transport: Optional httpx transport (used by tests).
        """
        self.api_url = api_url
        self._client = httpx.AsyncClient(
            headers={
                "content-type": "application/json",
                "x-api-key": api_key,
                "anthropic-version": api_version,
            },
            timeout=httpx.Timeout(timeout_seconds),
            transport=transport,
        )

    async def forward(self, body: bytes) -> UpstreamResponse:
        # RequestError covers transport failures and undecodable response bodies
        try:
            response = await self._client.post(self.api_url, content=body)
        except httpx.RequestError as exc:
            logger.error(
                "upstream.unreachable",
                extra={
                    "error_type": type(exc).__name__,
                    "upstream_url": self.api_url,
                },
            )
            raise UpstreamUnavailableAppError(
                code="upstream_unreachable",
                message="Failed to reach API",
            ) from exc

        logger.debug(
            "upstream.responded",
            extra={
                "status": response.status_code,
                "content_length": len(response.content),
            },
        )
        return UpstreamResponse(
            status_code=response.status_code,
            content=response.content,
            content_type=response.headers.get("content-type"),
        )

    async def aclose(self) -> None:
        await self._client.aclose()
