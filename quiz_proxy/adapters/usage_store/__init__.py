"""Usage counter store adapters.

The relay depends on ``AbstractUsageStore`` only; the Upstash REST store is
the deployed backend and tests substitute their own fakes.
"""

from quiz_proxy.adapters.usage_store.base import AbstractUsageStore
from quiz_proxy.adapters.usage_store.factory import create_usage_store
from quiz_proxy.adapters.usage_store.upstash import UpstashRestUsageStore

__all__ = [
    "AbstractUsageStore",
    "UpstashRestUsageStore",
    "create_usage_store",
]
