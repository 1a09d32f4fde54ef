"""Unit tests for caller identity helpers."""

from datetime import datetime, timedelta, timezone

import pytest

from quiz_proxy.core.identity import derive_identity, hash_identity, usage_key


@pytest.mark.parametrize(
    "client_id, forwarded_for, expected",
    [
        ("abc", "1.2.3.4", "abc:1.2.3.4"),
        ("abc", "1.2.3.4, 10.0.0.1, 10.0.0.2", "abc:1.2.3.4"),
        ("abc", "  1.2.3.4  ,10.0.0.1", "abc:1.2.3.4"),
        (None, "1.2.3.4", "unknown:1.2.3.4"),
        ("", "1.2.3.4", "unknown:1.2.3.4"),
        ("abc", None, "abc:unknown"),
        ("abc", "", "abc:unknown"),
        ("abc", " , 10.0.0.1", "abc:unknown"),
        (None, None, "unknown:unknown"),
    ],
)
def test_derive_identity(client_id, forwarded_for, expected) -> None:
    assert derive_identity(client_id, forwarded_for) == expected


def test_usage_key_uses_iso_date() -> None:
    now = datetime(2024, 1, 5, 8, 0, tzinfo=timezone.utc)

    assert usage_key("abc:1.2.3.4", now) == "usage:abc:1.2.3.4:2024-01-05"


def test_usage_key_changes_at_midnight_utc() -> None:
    before = datetime(2024, 1, 5, 23, 59, 59, tzinfo=timezone.utc)
    after = before + timedelta(seconds=1)

    assert usage_key("id", before) != usage_key("id", after)
    assert usage_key("id", after).endswith(":2024-01-06")


def test_hash_identity_is_stable_and_opaque() -> None:
    digest = hash_identity("abc:1.2.3.4")

    assert digest == hash_identity("abc:1.2.3.4")
    assert digest != hash_identity("abc:1.2.3.5")
    assert len(digest) == 16
    assert "1.2.3.4" not in digest
