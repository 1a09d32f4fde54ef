"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file

Values are read once at import time into the module-level ``settings``
instance and treated as read-only afterwards.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (serverless hosts inject env vars directly)
_env_file = str(_env_path) if _env_path.is_file() else None


# Nested BaseSettings don't inherit env_file, so populate os.environ first
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=False)


class UpstreamSettings(BaseSettings):
    """Upstream language-model API configuration.

    The API key is server-held: it is never read from inbound requests.
    """

    api_key: SecretStr | None = Field(
        None,
        description="Anthropic API key (ANTHROPIC_API_KEY)",
    )
    api_url: str = Field(
        "https://api.anthropic.com/v1/messages",
        description="Upstream Messages endpoint",
    )
    api_version: str = Field(
        "2023-06-01",
        description="Value sent in the anthropic-version header",
    )
    timeout_seconds: float | None = Field(
        None,
        description="Upstream request timeout in seconds (None waits indefinitely)",
    )

    model_config = SettingsConfigDict(
        env_prefix="ANTHROPIC_",
        case_sensitive=False,
    )


class StoreSettings(BaseSettings):
    """Usage counter store (Upstash Redis REST API) configuration.

    When either url or token is missing the store is treated as unavailable.
    """

    url: str | None = Field(
        None,
        description="Upstash REST endpoint (UPSTASH_REDIS_REST_URL)",
    )
    token: SecretStr | None = Field(
        None,
        description="Upstash REST bearer token (UPSTASH_REDIS_REST_TOKEN)",
    )
    timeout_seconds: float = Field(
        5.0,
        description="Timeout for a single store command in seconds",
        gt=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="UPSTASH_REDIS_REST_",
        case_sensitive=False,
    )

    @property
    def is_configured(self) -> bool:
        return bool(self.url) and self.token is not None and bool(self.token.get_secret_value())


class LogSettings(BaseSettings):
    """Logging configuration. Output is always JSON on stdout."""

    level: str = Field("INFO", description="Root log level")
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to read and echo the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Composed from the domain-specific settings above; each reads its own
    environment prefix.
    """

    app_env: str = APP_ENV
    upstream: UpstreamSettings = Field(default_factory=UpstreamSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)
    log: LogSettings = Field(default_factory=LogSettings)
    app: AppSettings = Field(default_factory=AppSettings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


settings = Settings()
