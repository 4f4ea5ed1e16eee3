"""Factory pattern for creating request-log store instances."""

from __future__ import annotations

import logging
from typing import Callable

from rate_gate.adapters.store.base import AbstractSortedSetStore
from rate_gate.adapters.store.in_memory import InMemorySortedSetStore
from rate_gate.adapters.store.redis_store import RedisSortedSetStore
from rate_gate.core.config import Settings
from rate_gate.core.errors import ValidationAppError

logger = logging.getLogger(__name__)


def create_store(
    settings: Settings, *, clock: Callable[[], float] | None = None
) -> AbstractSortedSetStore:
    """Instantiate the store backend named by ``RATE_LIMIT_STORE``.

    Args:
        settings: Resolved application settings.
        clock: Optional time source for the in-memory backend.

    Returns:
        AbstractSortedSetStore: Configured store.

    Raises:
        ValidationAppError: If the backend name is unknown.
    """
    backend = settings.rate_limit.store.lower()

    if backend == "redis":
        logger.info(
            "store.created",
            extra={
                "backend": "redis",
                "socket_timeout_s": settings.redis.socket_timeout_seconds,
            },
        )
        return RedisSortedSetStore.from_url(
            settings.redis.url,
            socket_timeout=settings.redis.socket_timeout_seconds,
        )

    if backend == "memory":
        logger.info("store.created", extra={"backend": "memory"})
        if clock is not None:
            return InMemorySortedSetStore(clock=clock)
        return InMemorySortedSetStore()

    raise ValidationAppError(
        code="store_unknown_backend",
        message=f"Unknown rate limit store: '{backend}'. Supported stores: redis, memory",
    )
