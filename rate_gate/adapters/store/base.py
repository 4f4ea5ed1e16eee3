"""Sorted-set store interface.

The limiter only needs five ordered-set primitives plus an optional atomic
admission call. Keeping them behind this ABC lets tests swap Redis for the
in-memory double without touching the limiter.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class AtomicAdmission:
    """Result of an atomically evaluated admission.

    Attributes:
        admitted: Whether a new entry was appended.
        oldest_score: Score of the oldest live entry when denied, if any.
    """

    admitted: bool
    oldest_score: float | None = None


class AbstractSortedSetStore(ABC):
    """Interface for the shared request-log store.

    Every method is one round trip. Implementations must raise
    ``StoreAppError`` for any transport or protocol failure.
    """

    @abstractmethod
    async def purge_older_than(self, key: str, cutoff_score: float) -> int:
        """Remove members scored at or below ``cutoff_score``.

        Returns:
            Number of removed members.
        """
        raise NotImplementedError

    @abstractmethod
    async def count(self, key: str) -> int:
        """Return the number of members under ``key`` (0 when absent)."""
        raise NotImplementedError

    @abstractmethod
    async def range_with_scores(
        self, key: str, start: int, stop: int
    ) -> list[tuple[str, float]]:
        """Return ``(member, score)`` pairs in ascending score order.

        ``start``/``stop`` are inclusive ranks; negative ranks count from the end.
        """
        raise NotImplementedError

    @abstractmethod
    async def add_scored(self, key: str, score: float, member: str) -> int:
        """Add ``member`` with ``score``; returns 1 if it was new."""
        raise NotImplementedError

    @abstractmethod
    async def set_expiry(self, key: str, ttl_ms: int) -> bool:
        """Set the key's time-to-live in milliseconds."""
        raise NotImplementedError

    @abstractmethod
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
        """Run purge, count, oldest lookup and insert as a single unit."""
        raise NotImplementedError

    @abstractmethod
    async def close(self) -> None:
        """Release connections held by the store."""
        raise NotImplementedError
