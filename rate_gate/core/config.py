"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
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

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Nested BaseSettings don't inherit env_file, so populate os.environ up front.
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_app_settings() -> "AppSettings":
    """Build app settings from environment.

    BaseSettings reads its values from the environment; static type checkers
    still treat fields as constructor arguments, hence the ignore.
    """

    return AppSettings()  # type: ignore[call-arg]


def _build_rate_limit_settings() -> "RateLimitSettings":
    return RateLimitSettings()  # type: ignore[call-arg]


def _build_redis_settings() -> "RedisSettings":
    return RedisSettings()  # type: ignore[call-arg]


def _build_log_settings() -> "LogSettings":
    return LogSettings()  # type: ignore[call-arg]


class AppSettings(BaseSettings):
    """HTTP surface configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    cors_allow_origin: str = Field(
        "*",
        description="Value sent as Access-Control-Allow-Origin on every response",
    )
    trust_forwarded_for: bool = Field(
        False,
        description="Resolve the client address from X-Forwarded-For when present",
    )
    admin_key_required: bool = Field(
        False,
        description="Whether the admin override endpoint requires X-Admin-Key",
    )
    admin_keys: str | None = Field(
        None,
        description="Comma-separated list of valid admin keys",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class RateLimitSettings(BaseSettings):
    """Sliding-window limiter and tier configuration."""

    store: str = Field(
        "redis",
        description="Request log backend: 'redis' (shared) or 'memory' (single process)",
    )
    key_prefix: str = Field(
        "rate-limit:",
        description="Namespace prepended to every identifier key in the store",
    )
    expiry_buffer_ms: int = Field(
        1000,
        description="Extra TTL added to the window when refreshing a key's expiry",
        ge=0,
    )
    atomic: bool = Field(
        False,
        description=(
            "Evaluate purge/count/insert as one server-side script. When false, "
            "concurrent requests for one identifier may slightly overshoot the limit."
        ),
    )
    free_window_ms: int = Field(5000, description="Base tier window in ms", ge=1)
    free_max_requests: int = Field(5, description="Base tier requests per window", ge=1)
    premium_window_ms: int = Field(5000, description="Premium tier window in ms", ge=1)
    premium_max_requests: int = Field(10, description="Premium tier requests per window", ge=1)
    premium_prefix: str = Field(
        "premium-",
        description="Identifier prefix that selects the premium tier",
    )

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        case_sensitive=False,
    )


class RedisSettings(BaseSettings):
    """Shared store connection settings."""

    url: str = Field(
        "redis://localhost:6379/0",
        description="Redis connection URL",
    )
    socket_timeout_seconds: float | None = Field(
        None,
        description="Per-command socket timeout; unset means wait for the transport",
    )

    model_config = SettingsConfigDict(
        env_prefix="REDIS_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="'json' or 'plain'")
    output: str = Field("stdout", description="'stdout' or 'file'")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(0, description="Rotate the log file at this size (0 disables)")
    backup_count: int = Field(5, description="Rotated files to keep")
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to accept and echo the correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are malformed.
    """

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=_build_app_settings)
    rate_limit: RateLimitSettings = Field(default_factory=_build_rate_limit_settings)
    redis: RedisSettings = Field(default_factory=_build_redis_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance; create_app() accepts an explicit one for tests.
settings = Settings()
