"""Global exception handlers.

Routes already fold expected failures into outcomes; these handlers catch
whatever still escapes (framework errors, bugs) and send it through the same
``render_outcome`` boundary, so the client always gets a JSON body with CORS
headers and no stack trace.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import Response

from rate_gate.core.errors import (
    AdminAppError,
    AppError,
    IdentificationAppError,
    StoreAppError,
)
from rate_gate.core.logging import get_request_id
from rate_gate.core.outcomes import (
    AdminRejected,
    IdentificationFailed,
    InternalFailure,
    Outcome,
    StoreFailed,
)
from rate_gate.core.responses import CorsPolicy, render_outcome

logger = logging.getLogger(__name__)


def outcome_for_error(exc: BaseException) -> Outcome:
    """Fold a stray exception into the outcome that renders it."""
    if isinstance(exc, IdentificationAppError):
        return IdentificationFailed(error=exc)
    if isinstance(exc, StoreAppError):
        return StoreFailed(error=exc)
    if isinstance(exc, AdminAppError):
        return AdminRejected(error=exc)
    return InternalFailure(error=exc)


def _cors_for(request: Request) -> CorsPolicy:
    context = getattr(request.app.state, "context", None)
    return context.cors if context is not None else CorsPolicy()


async def app_error_handler(request: Request, exc: AppError) -> Response:
    """Render an AppError raised outside the dispatcher."""
    logger.warning(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "request_path": request.url.path,
            "request_id": get_request_id(),
        },
    )
    return render_outcome(outcome_for_error(exc), _cors_for(request))


async def general_exception_handler(request: Request, exc: Exception) -> Response:
    """Fallback handler for unexpected errors (safety net)."""
    logger.error(
        "unhandled_exception.path",
        extra={
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )
    return render_outcome(InternalFailure(error=exc), _cors_for(request))


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(Exception)(general_exception_handler)
