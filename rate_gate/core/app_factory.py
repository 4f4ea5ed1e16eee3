"""Application factory for the FastAPI app.

Builds a fresh ``ServerContext`` per app so tests can run independent
instances side by side.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable

from fastapi import FastAPI

from rate_gate.adapters.store.base import AbstractSortedSetStore
from rate_gate.api.routes import admin_router, admission_router, health_router
from rate_gate.core.config import Settings, settings as default_settings
from rate_gate.core.context import build_server_context
from rate_gate.core.errors import StoreAppError
from rate_gate.core.exception_handlers import setup_exception_handlers
from rate_gate.core.logging import configure_logging
from rate_gate.core.middleware import request_id_middleware
from rate_gate.core.openapi import apply_openapi_customizations

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    *,
    store: AbstractSortedSetStore | None = None,
    clock: Callable[[], float] | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        settings: Settings to use; defaults to the environment-loaded settings.
        store: Optional store overriding the configured backend.
        clock: Optional time source (seconds) for the limiters.

    Returns:
        Configured FastAPI app with middleware, handlers and routers.
    """
    cfg = settings or default_settings

    # Logging first so subsequent init logs are formatted as desired
    configure_logging(cfg.log)

    context = build_server_context(cfg, store=store, clock=clock)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("server.started", extra={"store": type(context.store).__name__})
        try:
            yield
        finally:
            try:
                await context.aclose()
            except StoreAppError as exc:
                # Shutdown continues; the connection is abandoned
                logger.error(
                    "store.close_failed",
                    extra={
                        "error_code": exc.code,
                        "cause_type": type(exc.cause).__name__ if exc.cause else None,
                    },
                )
            logger.info("server.stopped")

    app = FastAPI(
        title="Rate Gate",
        description=(
            "Sliding-window admission control per bearer token or client address, "
            "backed by a shared Redis store, with an administrative bypass."
        ),
        version="0.1.0",
        debug=cfg.app.debug,
        lifespan=lifespan,
    )
    app.state.context = context

    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    # Catch-all admission route must come last
    app.include_router(health_router)
    app.include_router(admin_router)
    app.include_router(admission_router)

    apply_openapi_customizations(app)

    return app
