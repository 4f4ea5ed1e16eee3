"""Long-lived server state.

One ``ServerContext`` is built per application instance and stored on
``app.state``. Nothing here is module-global, so several apps (e.g. in tests)
never share overrides, limiters or store connections.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from fastapi import Request

from rate_gate.adapters.store.base import AbstractSortedSetStore
from rate_gate.adapters.store.factory import create_store
from rate_gate.adapters.store.in_memory import InMemorySortedSetStore
from rate_gate.core.admission import AdmissionDispatcher
from rate_gate.core.config import Settings
from rate_gate.core.overrides import OverrideStore
from rate_gate.core.responses import CorsPolicy
from rate_gate.core.tiers import TierRegistry, build_tier_registry

logger = logging.getLogger(__name__)


@dataclass
class ServerContext:
    settings: Settings
    store: AbstractSortedSetStore
    overrides: OverrideStore
    tiers: TierRegistry
    dispatcher: AdmissionDispatcher
    cors: CorsPolicy

    async def aclose(self) -> None:
        await self.store.close()


def build_server_context(
    settings: Settings,
    *,
    store: AbstractSortedSetStore | None = None,
    clock: Callable[[], float] | None = None,
) -> ServerContext:
    """Wire the store, tiers, overrides and dispatcher for one server.

    Args:
        settings: Resolved settings.
        store: Optional pre-built store (tests inject the in-memory double).
        clock: Optional time source (seconds) for the limiters and memory store.
    """
    store = store or create_store(settings, clock=clock)
    tiers = build_tier_registry(store, settings.rate_limit, clock=clock)
    overrides = OverrideStore()

    if not isinstance(store, InMemorySortedSetStore):
        logger.warning(
            "overrides.process_local",
            extra={
                "detail": (
                    "request logs are shared through the store but overrides are "
                    "held per process; set them on every instance"
                )
            },
        )

    for tier in tiers.tiers():
        logger.info(
            "tier.configured",
            extra={
                "tier": tier.name,
                "prefix": tier.prefix,
                "window_ms": tier.config.window_ms,
                "max_requests": tier.config.max_requests,
                "atomic": settings.rate_limit.atomic,
            },
        )

    return ServerContext(
        settings=settings,
        store=store,
        overrides=overrides,
        tiers=tiers,
        dispatcher=AdmissionDispatcher(
            overrides=overrides,
            tiers=tiers,
            trust_forwarded_for=settings.app.trust_forwarded_for,
        ),
        cors=CorsPolicy(allow_origin=settings.app.cors_allow_origin),
    )


def get_server_context(request: Request) -> ServerContext:
    """FastAPI dependency returning the context of the serving app."""
    return request.app.state.context
