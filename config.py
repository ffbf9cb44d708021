# config.py

"""Application configuration utilities.

Values are primarily loaded from ``config.json`` and may be overridden by
environment variables. The :func:`get_settings` helper merges the two sources
and caches the result.
"""

from __future__ import annotations

import json
import os
from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Checked in this order when resolving the database connection string.
DATABASE_URL_SOURCES = (
    "DATABASE_URL",
    "POSTGRES_URL",
    "POSTGRES_URL_NON_POOLING",
    "POSTGRES_PRISMA_URL",
)


class SSLMode(str, Enum):
    """TLS policy for database connections.

    ``NONE`` disables TLS, ``REQUIRE`` encrypts without verifying the server
    certificate and ``VERIFY_CA`` verifies it against ``db_ssl_root_cert`` (or
    the system trust store when no root certificate is configured).
    """

    NONE = "none"
    REQUIRE = "require"
    VERIFY_CA = "verify-ca"


class Settings(BaseSettings):
    """Application settings merged from JSON and environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: str | None = None
    postgres_url: str | None = None
    postgres_url_non_pooling: str | None = None
    postgres_prisma_url: str | None = None
    db_ssl_mode: SSLMode = SSLMode.NONE
    db_ssl_root_cert: str | None = None
    db_pool_max: int = 20
    db_idle_timeout_secs: int = 30
    db_connect_timeout_secs: int = 30
    secret_key: str = "change-me"
    access_token_expire_minutes: int = 60
    max_body_mb: int = 10
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 3001

    def database_sources(self) -> list[tuple[str, str | None]]:
        """Return ``(ENV_NAME, value)`` pairs in resolution order."""

        return [(name, getattr(self, name.lower())) for name in DATABASE_URL_SOURCES]


# Cached singleton to avoid repeated file reads
@lru_cache
def get_settings() -> Settings:
    """Return merged settings with environment variable precedence.

    The configuration is read from ``config.json`` located alongside this file
    and fed into :class:`Settings`. Environment variables override any values
    from the JSON file. The result is cached to prevent repeated disk reads.
    """

    config_path = Path(__file__).with_name("config.json")
    data = json.loads(config_path.read_text()) if config_path.exists() else {}
    env_override = {
        k.lower(): v
        for k, v in os.environ.items()
        if k.lower() in Settings.model_fields
    }
    merged = {**data, **env_override}
    # Environment variables override values from the JSON file.
    return Settings(**merged)
