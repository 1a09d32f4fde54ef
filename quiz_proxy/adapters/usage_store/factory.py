"""Factory for the usage counter store."""

from __future__ import annotations

import logging

from quiz_proxy.adapters.usage_store.base import AbstractUsageStore
from quiz_proxy.adapters.usage_store.upstash import UpstashRestUsageStore
from quiz_proxy.core.config import StoreSettings, settings

logger = logging.getLogger(__name__)


def create_usage_store(store_settings: StoreSettings | None = None) -> AbstractUsageStore | None:
    """Build the Upstash store when both URL and token are configured.

    Args:
        store_settings: Optional settings; defaults to the global settings.

    Returns:
        Configured store, or None when the store is unavailable. Callers treat
        None as "no usage recorded" (fail-open).
    """
    cfg = store_settings or settings.store

    if not cfg.is_configured:
        logger.warning(
            "usage_store.unconfigured",
            extra={
                "url_present": bool(cfg.url),
                "token_present": cfg.token is not None,
            },
        )
        return None

    return UpstashRestUsageStore(
        url=cfg.url,
        token=cfg.token.get_secret_value(),
        timeout_seconds=cfg.timeout_seconds,
    )
