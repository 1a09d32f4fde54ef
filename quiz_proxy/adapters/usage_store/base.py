"""Usage store interface.

Implementations wrap a key-value service that supports plain GET and
SET-with-expiry. Every failure is raised as ``StoreAppError`` so callers can
apply a single fail-open policy.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class AbstractUsageStore(ABC):
    """Interface for key-value stores holding daily usage counters."""

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the stored value for ``key`` or None when absent/expired.

        Raises:
            StoreAppError: If the store cannot be read.
        """
        raise NotImplementedError

    @abstractmethod
    async def set(self, key: str, value: int | str, *, ex_seconds: int) -> None:
        """Store ``value`` under ``key`` with a fresh expiry of ``ex_seconds``.

        Raises:
            StoreAppError: If the store cannot be written.
        """
        raise NotImplementedError

    async def aclose(self) -> None:
        """Release network resources held by the store, if any."""
        return None
