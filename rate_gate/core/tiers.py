"""Rate-limit tiers and prefix-based tier selection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence

from rate_gate.adapters.rate_limit.base import AbstractRateLimiter
from rate_gate.adapters.rate_limit.sliding_window import SlidingWindowRateLimiter
from rate_gate.adapters.store.base import AbstractSortedSetStore
from rate_gate.core.config import RateLimitSettings

FREE_TIER = "free"
PREMIUM_TIER = "premium"


@dataclass(frozen=True)
class TierConfig:
    """Window length and request budget of a tier."""

    window_ms: int
    max_requests: int

    def __post_init__(self) -> None:
        if self.window_ms < 1:
            raise ValueError("window_ms must be >= 1")
        if self.max_requests < 1:
            raise ValueError("max_requests must be >= 1")


@dataclass(frozen=True)
class Tier:
    """A named tier with the limiter instance that enforces it.

    Attributes:
        name: Tier/role name reported to clients.
        prefix: Identifier prefix selecting this tier (None for the base tier).
        config: Window and budget.
        limiter: Limiter built once for the lifetime of the server.
    """

    name: str
    prefix: str | None
    config: TierConfig
    limiter: AbstractRateLimiter


class TierRegistry:
    """Selects a tier by identifier prefix, falling back to the base tier."""

    def __init__(self, *, base: Tier, prefixed: Sequence[Tier] = ()) -> None:
        for tier in prefixed:
            if not tier.prefix:
                raise ValueError(f"tier '{tier.name}' needs a non-empty prefix")
        # Longest prefix wins when prefixes overlap
        self._prefixed = sorted(prefixed, key=lambda t: len(t.prefix or ""), reverse=True)
        self._base = base

    @property
    def base(self) -> Tier:
        return self._base

    def tiers(self) -> list[Tier]:
        return [*self._prefixed, self._base]

    def select(self, identifier: str) -> Tier:
        for tier in self._prefixed:
            if identifier.startswith(tier.prefix or ""):
                return tier
        return self._base


def build_tier_registry(
    store: AbstractSortedSetStore,
    rate_limit: RateLimitSettings,
    *,
    clock: Callable[[], float] | None = None,
) -> TierRegistry:
    """Create the free and premium tiers, each with its own limiter.

    Args:
        store: Shared store used by every tier's limiter.
        rate_limit: Tier and limiter settings.
        clock: Optional time source (seconds) shared by the limiters.
    """

    def make_tier(name: str, prefix: str | None, config: TierConfig) -> Tier:
        extra = {"clock": clock} if clock is not None else {}
        limiter = SlidingWindowRateLimiter(
            store,
            window_ms=config.window_ms,
            max_requests=config.max_requests,
            key_prefix=rate_limit.key_prefix,
            expiry_buffer_ms=rate_limit.expiry_buffer_ms,
            atomic=rate_limit.atomic,
            **extra,
        )
        return Tier(name=name, prefix=prefix, config=config, limiter=limiter)

    free = make_tier(
        FREE_TIER,
        None,
        TierConfig(rate_limit.free_window_ms, rate_limit.free_max_requests),
    )
    premium = make_tier(
        PREMIUM_TIER,
        rate_limit.premium_prefix,
        TierConfig(rate_limit.premium_window_ms, rate_limit.premium_max_requests),
    )
    return TierRegistry(base=free, prefixed=[premium])
