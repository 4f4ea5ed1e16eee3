"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before any ``rate_gate`` import so the global
settings never point at a real Redis or a developer .env file.
"""

import os
from unittest.mock import Mock

import pytest

os.environ["APP_ENV"] = "testing"
os.environ.setdefault("RATE_LIMIT_STORE", "memory")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("APP_ADMIN_KEY_REQUIRED", "false")

from rate_gate.adapters.store.in_memory import InMemorySortedSetStore  # noqa: E402
from rate_gate.core.config import (  # noqa: E402
    AppSettings,
    LogSettings,
    RateLimitSettings,
    Settings,
)


@pytest.fixture
def clock() -> Mock:
    """Controllable time source (UNIX seconds); bump ``return_value`` to advance."""
    return Mock(return_value=1_000.0)


@pytest.fixture
def memory_store(clock: Mock) -> InMemorySortedSetStore:
    return InMemorySortedSetStore(clock=clock)


@pytest.fixture
def make_settings():
    """Build isolated Settings with optional section overrides."""

    def _make(
        *,
        app: dict | None = None,
        rate_limit: dict | None = None,
    ) -> Settings:
        return Settings(
            app=AppSettings(**(app or {})),
            rate_limit=RateLimitSettings(store="memory", **(rate_limit or {})),
            log=LogSettings(level="WARNING"),
        )

    return _make
