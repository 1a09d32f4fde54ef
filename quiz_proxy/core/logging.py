"""Structured logging for the relay.

Every record leaves the process as one JSON object on stdout, which is what
serverless log collectors ingest. Two filters run on the handler before the
record is formatted:

- ``RequestIdFilter`` stamps the request id bound in a context variable by
  the request middleware.
- ``SensitiveDataFilter`` blanks credentials and quiz content, and replaces
  caller identifiers (client id, forwarded address) with the same short hash
  the relay logs, so lines can be grouped per caller without recording who
  the caller is.
"""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from logging import LogRecord
from typing import Any, Iterable, Mapping

from quiz_proxy.core.config import LogSettings, settings
from quiz_proxy.core.identity import hash_identity

REDACTED = "[REDACTED]"

# Credentials and message content
SECRET_KEYS: frozenset[str] = frozenset(
    {
        "api_key",
        "x-api-key",
        "anthropic_api_key",
        "authorization",
        "token",
        "upstash_redis_rest_token",
        "secret",
        "password",
        "cookie",
        "set-cookie",
        "body",
        "request_body",
        "response_body",
        "messages",
        "prompt",
        "completion",
    }
)

# Caller identifiers, logged only as hash_identity(value)
IDENTITY_KEYS: frozenset[str] = frozenset(
    {
        "identity",
        "client_id",
        "x-client-id",
        "client_ip",
        "forwarded_for",
        "x-forwarded-for",
    }
)

# Attributes every LogRecord has; anything else arrived through ``extra``
_RECORD_ATTRS = frozenset(vars(LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}

_request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)


def set_request_id(request_id: str | None) -> None:
    _request_id_var.set(request_id)


def get_request_id() -> str | None:
    return _request_id_var.get()


def clear_request_id() -> None:
    _request_id_var.set(None)


def scrub(key: str, value: Any, secret_keys: frozenset[str] = SECRET_KEYS) -> Any:
    """Return ``value`` as it may appear in a log line under ``key``.

    Secret keys are blanked, identity keys hashed, and mappings and sequences
    are scrubbed recursively (list items are checked by the keys they hold).

    Examples:
        >>> scrub("x-api-key", "sk-ant-123")
        '[REDACTED]'
        >>> scrub("headers", {"Authorization": "Bearer t", "accept": "*/*"})
        {'Authorization': '[REDACTED]', 'accept': '*/*'}
    """
    lowered = key.lower()
    if lowered in secret_keys:
        return REDACTED
    if lowered in IDENTITY_KEYS:
        return None if value is None else hash_identity(str(value))
    if isinstance(value, Mapping):
        return {k: scrub(str(k), v, secret_keys) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [scrub("", item, secret_keys) for item in value]
    return value


def record_extras(record: LogRecord) -> dict[str, Any]:
    """Fields passed to the logging call through ``extra``."""
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _RECORD_ATTRS and not key.startswith("_")
    }


class RequestIdFilter(logging.Filter):
    """Attach request_id from context when absent on the record."""

    def filter(self, record: LogRecord) -> bool:  # noqa: D401
        if getattr(record, "request_id", None) is None:
            request_id = get_request_id()
            if request_id:
                record.request_id = request_id
        return True


class SensitiveDataFilter(logging.Filter):
    """Scrub ``extra`` fields in place before the record is formatted."""

    def __init__(self, secret_keys: Iterable[str] | None = None) -> None:
        super().__init__()
        self.secret_keys = frozenset(k.lower() for k in secret_keys) if secret_keys else SECRET_KEYS

    def filter(self, record: LogRecord) -> bool:  # noqa: D401
        for key, value in record_extras(record).items():
            setattr(record, key, scrub(key, value, self.secret_keys))
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per record: fixed envelope plus the ``extra`` fields."""

    def format(self, record: LogRecord) -> str:  # noqa: D401
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = getattr(record, "request_id", None) or get_request_id()
        if request_id:
            payload["request_id"] = request_id

        payload.update(record_extras(record))

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def configure_logging(log_settings: LogSettings | None = None) -> None:
    """Route all loggers to a single scrubbed JSON handler on stdout."""
    cfg = log_settings or settings.log

    level = logging.DEBUG if settings.app.debug else getattr(logging, cfg.level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestIdFilter())
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(JsonFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # uvicorn keeps its own access log; httpx logs full request URLs at INFO
    logging.getLogger("uvicorn.access").propagate = False
    logging.getLogger("httpx").setLevel(logging.WARNING)
