"""Factory for the upstream LLM client."""

from quiz_proxy.adapters.llm.anthropic_client import AnthropicMessagesClient
from quiz_proxy.adapters.llm.base import AbstractUpstreamClient
from quiz_proxy.core.config import UpstreamSettings, settings
from quiz_proxy.core.errors import ConfigurationAppError


def create_upstream_client(upstream_settings: UpstreamSettings | None = None) -> AbstractUpstreamClient:
    """Instantiate the upstream client from configuration.

    Returns:
        AbstractUpstreamClient: Configured Anthropic passthrough client.

    Raises:
        ConfigurationAppError: If ANTHROPIC_API_KEY is not configured.
    """
    cfg = upstream_settings or settings.upstream

    if cfg.api_key is None or not cfg.api_key.get_secret_value():
        raise ConfigurationAppError(
            code="upstream_missing_api_key",
            message="Upstream API is not configured",
            details={"hint": "Set the ANTHROPIC_API_KEY environment variable"},
        )

    return AnthropicMessagesClient(
        api_key=cfg.api_key.get_secret_value(),
        api_url=cfg.api_url,
        api_version=cfg.api_version,
        timeout_seconds=cfg.timeout_seconds,
    )
