"""Caller identity and usage-key helpers for the daily quota.

A caller is identified by the client-supplied ``X-Client-ID`` token combined
with the first address of ``X-Forwarded-For``. Usage is counted per identity
per UTC calendar day.
"""

from __future__ import annotations

import hashlib
from datetime import datetime

UNKNOWN = "unknown"


def derive_identity(client_id: str | None, forwarded_for: str | None) -> str:
    """Build the ``clientId:clientIP`` identity for a request.

    Args:
        client_id: Raw X-Client-ID header value.
        forwarded_for: Raw X-Forwarded-For header value.

    Returns:
        Identity string; missing or empty parts become "unknown".

    Examples:
        >>> derive_identity("abc", "1.2.3.4, 10.0.0.1")
        'abc:1.2.3.4'
        >>> derive_identity(None, None)
        'unknown:unknown'
    """
    client = client_id or UNKNOWN
    address = UNKNOWN
    if forwarded_for:
        address = forwarded_for.split(",")[0].strip() or UNKNOWN
    return f"{client}:{address}"


def usage_key(identity: str, now: datetime) -> str:
    """Return the store key ``usage:<identity>:<YYYY-MM-DD>`` for ``now``.

    ``now`` must be timezone-aware UTC; the date part is what the quota
    resets on.
    """
    return f"usage:{identity}:{now.date().isoformat()}"


def hash_identity(identity: str) -> str:
    """Hash the identity for logging without exposing client tokens or IPs."""
    return hashlib.sha256(identity.encode()).hexdigest()[:16]
