"""Sliding-window rate limiter backed by a sorted-set store.

Each identifier owns a sorted set of admission timestamps (ms). A window is
anchored at the request being checked, ``[now - window_ms, now]``, rather than
at clock-aligned buckets, so a burst straddling a bucket boundary cannot pass
twice the limit.

Notes:
- Default mode issues purge, count, (range) and insert as separate round
  trips. Concurrent checks for the same identifier can interleave between
  count and insert and admit slightly more than ``max_requests``; the
  overshoot is bounded by the number of in-flight checks for that identifier.
- ``atomic=True`` delegates the whole sequence to
  ``AbstractSortedSetStore.admit_atomically`` (a Lua script on Redis).
"""

from __future__ import annotations

import logging
import math
import time
import uuid
from typing import Callable

from rate_gate.adapters.rate_limit.base import (
    AbstractRateLimiter,
    RateLimitAdmitted,
    RateLimitDecision,
    RateLimitExceeded,
)
from rate_gate.adapters.store.base import AbstractSortedSetStore
from rate_gate.core.logging import hash_identifier

logger = logging.getLogger(__name__)

DEFAULT_KEY_PREFIX = "rate-limit:"
DEFAULT_EXPIRY_BUFFER_MS = 1000


class SlidingWindowRateLimiter(AbstractRateLimiter):
    """Per-identifier sliding-window log limiter."""

    def __init__(
        self,
        store: AbstractSortedSetStore,
        *,
        window_ms: int,
        max_requests: int,
        clock: Callable[[], float] = time.time,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        expiry_buffer_ms: int = DEFAULT_EXPIRY_BUFFER_MS,
        atomic: bool = False,
    ) -> None:
        """Initialize the limiter.

        Args:
            store: Shared sorted-set store holding the request logs.
            window_ms: Length of the trailing window in milliseconds.
            max_requests: Requests admitted per window.
            clock: Time source returning UNIX time in seconds.
            key_prefix: Namespace prepended to identifiers to form store keys.
            expiry_buffer_ms: Added to the window when refreshing a key's TTL.
            atomic: Evaluate the admission sequence as one store operation.

        Raises:
            ValueError: If window_ms, max_requests or expiry_buffer_ms are invalid.
        """
        if window_ms < 1:
            raise ValueError("window_ms must be >= 1")
        if max_requests < 1:
            raise ValueError("max_requests must be >= 1")
        if expiry_buffer_ms < 0:
            raise ValueError("expiry_buffer_ms must be >= 0")

        self._store = store
        self._window_ms = window_ms
        self._max_requests = max_requests
        self._clock = clock
        self._key_prefix = key_prefix
        self._expiry_buffer_ms = expiry_buffer_ms
        self._atomic = atomic

    @property
    def window_ms(self) -> int:
        return self._window_ms

    @property
    def max_requests(self) -> int:
        return self._max_requests

    @property
    def atomic(self) -> bool:
        return self._atomic

    def key_for(self, identifier: str) -> str:
        """Return the namespaced store key for ``identifier``."""
        return f"{self._key_prefix}{identifier}"

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def _retry_after(self, oldest_score: float | None, now_ms: int) -> int | None:
        if oldest_score is None:
            return None
        return max(0, math.ceil((oldest_score + self._window_ms - now_ms) / 1000))

    @staticmethod
    def _new_member(now_ms: int) -> str:
        # Unique per call so same-millisecond admissions don't overwrite each other
        return f"{now_ms}-{uuid.uuid4().hex}"

    async def check(self, identifier: str) -> RateLimitDecision:
        """Admit or deny one request for ``identifier``.

        Raises:
            ValueError: If identifier is empty.
            StoreAppError: If the store fails; nothing is retried.
        """
        if not identifier:
            raise ValueError("identifier must be a non-empty string")

        now_ms = self._now_ms()
        key = self.key_for(identifier)

        if self._atomic:
            decision = await self._check_atomic(identifier, key, now_ms)
        else:
            decision = await self._check_sequential(identifier, key, now_ms)

        if isinstance(decision, RateLimitExceeded):
            logger.info(
                "rate_limit.exceeded",
                extra={
                    "identifier_hash": hash_identifier(identifier),
                    "limit": self._max_requests,
                    "window_ms": self._window_ms,
                    "retry_after_s": decision.retry_after,
                },
            )
        return decision

    async def _check_sequential(
        self, identifier: str, key: str, now_ms: int
    ) -> RateLimitDecision:
        window_start = now_ms - self._window_ms

        await self._store.purge_older_than(key, window_start)
        count = await self._store.count(key)

        if count >= self._max_requests:
            oldest = await self._store.range_with_scores(key, 0, 0)
            # Empty when a concurrent purge removed the last entry meanwhile
            oldest_score = oldest[0][1] if oldest else None
            return RateLimitExceeded(
                identifier=identifier,
                retry_after=self._retry_after(oldest_score, now_ms),
            )

        await self._store.add_scored(key, now_ms, self._new_member(now_ms))
        await self._store.set_expiry(key, self._window_ms + self._expiry_buffer_ms)
        return RateLimitAdmitted(identifier=identifier)

    async def _check_atomic(
        self, identifier: str, key: str, now_ms: int
    ) -> RateLimitDecision:
        result = await self._store.admit_atomically(
            key,
            now_ms=now_ms,
            window_ms=self._window_ms,
            max_requests=self._max_requests,
            member=self._new_member(now_ms),
            ttl_ms=self._window_ms + self._expiry_buffer_ms,
        )
        if result.admitted:
            return RateLimitAdmitted(identifier=identifier)
        return RateLimitExceeded(
            identifier=identifier,
            retry_after=self._retry_after(result.oldest_score, now_ms),
        )
