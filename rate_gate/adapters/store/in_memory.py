"""In-memory sorted-set store.

Notes:
- Per-process only: each worker keeps its own request log, so running more
  than one process multiplies the effective limit.
- Mirrors the Redis semantics the limiter relies on (inclusive score purge,
  ascending ranges with negative ranks, millisecond TTLs).
- Thread-safe: uses a lock around shared state.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Callable

from rate_gate.adapters.store.base import AbstractSortedSetStore, AtomicAdmission


@dataclass
class _SortedSet:
    scores: dict[str, float] = field(default_factory=dict)
    expires_at_ms: float | None = None

    def ordered(self) -> list[tuple[str, float]]:
        # Redis orders equal scores lexicographically by member
        return sorted(self.scores.items(), key=lambda item: (item[1], item[0]))


class InMemorySortedSetStore(AbstractSortedSetStore):
    """Drop-in double for ``RedisSortedSetStore`` with the same capability set."""

    def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
        """Initialize an empty store.

        Args:
            clock: Time source returning UNIX time in seconds, used for TTLs.
        """
        self._clock = clock
        self._lock = threading.RLock()
        self._sets: dict[str, _SortedSet] = {}
        self.closed = False

    def _now_ms(self) -> float:
        return self._clock() * 1000

    def _live_set(self, key: str) -> _SortedSet | None:
        """Return the set for ``key``, dropping it first if its TTL elapsed."""
        entry = self._sets.get(key)
        if entry is None:
            return None
        if entry.expires_at_ms is not None and entry.expires_at_ms <= self._now_ms():
            del self._sets[key]
            return None
        return entry

    def _drop_if_empty(self, key: str, entry: _SortedSet) -> None:
        # Redis deletes a sorted set (and its TTL) once its last member is gone
        if not entry.scores:
            self._sets.pop(key, None)

    def _purge_locked(self, key: str, cutoff_score: float) -> int:
        entry = self._live_set(key)
        if entry is None:
            return 0
        expired = [member for member, score in entry.scores.items() if score <= cutoff_score]
        for member in expired:
            del entry.scores[member]
        self._drop_if_empty(key, entry)
        return len(expired)

    def _add_locked(self, key: str, score: float, member: str) -> int:
        entry = self._live_set(key)
        if entry is None:
            entry = self._sets[key] = _SortedSet()
        is_new = member not in entry.scores
        entry.scores[member] = score
        return int(is_new)

    def _expire_locked(self, key: str, ttl_ms: int) -> bool:
        entry = self._live_set(key)
        if entry is None:
            return False
        entry.expires_at_ms = self._now_ms() + ttl_ms
        return True

    async def purge_older_than(self, key: str, cutoff_score: float) -> int:
        with self._lock:
            return self._purge_locked(key, cutoff_score)

    async def count(self, key: str) -> int:
        with self._lock:
            entry = self._live_set(key)
            return len(entry.scores) if entry else 0

    async def range_with_scores(
        self, key: str, start: int, stop: int
    ) -> list[tuple[str, float]]:
        with self._lock:
            entry = self._live_set(key)
            if entry is None:
                return []
            rows = entry.ordered()
            size = len(rows)
            if start < 0:
                start = max(size + start, 0)
            if stop < 0:
                stop = size + stop
            if start > stop or start >= size:
                return []
            return rows[start : stop + 1]

    async def add_scored(self, key: str, score: float, member: str) -> int:
        with self._lock:
            return self._add_locked(key, score, member)

    async def set_expiry(self, key: str, ttl_ms: int) -> bool:
        with self._lock:
            return self._expire_locked(key, ttl_ms)

    async def admit_atomically(
        self,
        key: str,
        *,
        now_ms: int,
        window_ms: int,
        max_requests: int,
        member: str,
        ttl_ms: int,
    ) -> AtomicAdmission:
        with self._lock:
            self._purge_locked(key, now_ms - window_ms)
            entry = self._live_set(key)
            if entry is not None and len(entry.scores) >= max_requests:
                oldest = entry.ordered()[0][1] if entry.scores else None
                return AtomicAdmission(admitted=False, oldest_score=oldest)

            self._add_locked(key, now_ms, member)
            self._expire_locked(key, ttl_ms)
            return AtomicAdmission(admitted=True)

    async def close(self) -> None:
        with self._lock:
            self._sets.clear()
            self.closed = True
