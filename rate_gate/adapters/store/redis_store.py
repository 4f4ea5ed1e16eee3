"""Redis-backed sorted-set store.

Uses ``redis.asyncio`` so each primitive is a single awaited round trip.
Transport, protocol and timeout failures are translated into
``StoreAppError``; callers never see a raw ``redis`` exception.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, TypeVar

from redis.asyncio import Redis
from redis.exceptions import RedisError

from rate_gate.adapters.store.base import AbstractSortedSetStore, AtomicAdmission
from rate_gate.adapters.store.scripts import SLIDING_WINDOW_ADMIT_SCRIPT
from rate_gate.core.errors import StoreAppError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RedisSortedSetStore(AbstractSortedSetStore):
    """Sorted-set store talking to a shared Redis instance."""

    def __init__(self, client: Redis) -> None:
        """Wrap an existing client.

        Args:
            client: ``redis.asyncio.Redis`` created with ``decode_responses=True``.
        """
        self._client = client
        self._admit_script = client.register_script(SLIDING_WINDOW_ADMIT_SCRIPT)

    @classmethod
    def from_url(cls, url: str, *, socket_timeout: float | None = None) -> "RedisSortedSetStore":
        """Build a store from a connection URL.

        The connection is opened lazily on the first command.
        """
        client = Redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=socket_timeout,
        )
        return cls(client)

    async def _execute(self, operation: str, awaitable: Awaitable[T]) -> T:
        try:
            return await awaitable
        except (RedisError, OSError) as exc:
            logger.error(
                "store.operation_failed",
                extra={
                    "operation": operation,
                    "error_type": type(exc).__name__,
                    "error_msg": str(exc),
                },
            )
            raise StoreAppError(
                code="store_unavailable",
                message=f"Store operation '{operation}' failed",
                details={"operation": operation},
                cause=exc,
            ) from exc

    async def purge_older_than(self, key: str, cutoff_score: float) -> int:
        return await self._execute(
            "purge_older_than",
            self._client.zremrangebyscore(key, "-inf", cutoff_score),
        )

    async def count(self, key: str) -> int:
        return await self._execute("count", self._client.zcard(key))

    async def range_with_scores(
        self, key: str, start: int, stop: int
    ) -> list[tuple[str, float]]:
        rows = await self._execute(
            "range_with_scores",
            self._client.zrange(key, start, stop, withscores=True),
        )
        return [(str(member), float(score)) for member, score in rows]

    async def add_scored(self, key: str, score: float, member: str) -> int:
        return await self._execute("add_scored", self._client.zadd(key, {member: score}))

    async def set_expiry(self, key: str, ttl_ms: int) -> bool:
        return bool(await self._execute("set_expiry", self._client.pexpire(key, ttl_ms)))

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
        reply: list[Any] = await self._execute(
            "admit_atomically",
            self._admit_script(
                keys=[key],
                args=[now_ms, window_ms, max_requests, member, ttl_ms],
            ),
        )
        if int(reply[0]) == 1:
            return AtomicAdmission(admitted=True)

        oldest = reply[1] if len(reply) > 1 else None
        return AtomicAdmission(
            admitted=False,
            oldest_score=float(oldest) if oldest is not None else None,
        )

    async def close(self) -> None:
        await self._execute("close", self._client.aclose())
        logger.info("store.closed", extra={"backend": "redis"})
