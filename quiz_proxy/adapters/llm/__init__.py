"""LLM adapter layer - forwards requests to the upstream model API."""

from quiz_proxy.adapters.llm.anthropic_client import AnthropicMessagesClient
from quiz_proxy.adapters.llm.base import AbstractUpstreamClient, UpstreamResponse
from quiz_proxy.adapters.llm.factory import create_upstream_client

__all__ = [
    "AbstractUpstreamClient",
    "AnthropicMessagesClient",
    "UpstreamResponse",
    "create_upstream_client",
]
