"""HTTP rendering of outcomes.

``render_outcome`` is the single place where outcomes (and the errors they
carry) are mapped to status codes and bodies. Every response it produces
passes through ``apply_cors_headers`` so error paths are as CORS-compliant as
success paths.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import assert_never

from fastapi import status
from fastapi.responses import JSONResponse, Response

from rate_gate.core.errors import AdminAppError, AdminAuthError, AdminContentTypeError
from rate_gate.core.logging import get_request_id
from rate_gate.core.outcomes import (
    AdminRejected,
    Admitted,
    Bypassed,
    IdentificationFailed,
    InternalFailure,
    Outcome,
    OverrideApplied,
    Preflight,
    RateLimited,
    StoreFailed,
)

logger = logging.getLogger(__name__)

HEADER_REMAINING = "X-Rate-Limit-Remaining"
HEADER_EXCEEDED = "X-Rate-Limit-Exceeded"
HEADER_ROLE = "X-Rate-Limit-Role"
HEADER_RETRY_AFTER = "Retry-After"

REMAINING_AVAILABLE = "Available"
REMAINING_OVERRIDDEN = "Overridden"


@dataclass(frozen=True)
class CorsPolicy:
    """CORS headers attached to every response."""

    allow_origin: str = "*"
    allow_methods: tuple[str, ...] = ("GET", "POST", "OPTIONS")
    allow_headers: tuple[str, ...] = ("Content-Type", "Authorization", "X-Admin-Key")
    expose_headers: tuple[str, ...] = (
        HEADER_REMAINING,
        HEADER_EXCEEDED,
        HEADER_ROLE,
        HEADER_RETRY_AFTER,
        "X-Request-ID",
    )

    def headers(self) -> dict[str, str]:
        return {
            "Access-Control-Allow-Origin": self.allow_origin,
            "Access-Control-Allow-Methods": ", ".join(self.allow_methods),
            "Access-Control-Allow-Headers": ", ".join(self.allow_headers),
            "Access-Control-Expose-Headers": ", ".join(self.expose_headers),
        }


def apply_cors_headers(response: Response, cors: CorsPolicy) -> Response:
    for name, value in cors.headers().items():
        response.headers[name] = value
    return response


def _error(status_code: int, message: str, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


def _render_admin_rejection(error: AdminAppError) -> Response:
    if isinstance(error, AdminContentTypeError):
        return _error(status.HTTP_415_UNSUPPORTED_MEDIA_TYPE, error.message)
    if isinstance(error, AdminAuthError):
        return _error(status.HTTP_403_FORBIDDEN, error.message)
    return _error(status.HTTP_400_BAD_REQUEST, error.message)


def _render(outcome: Outcome) -> Response:
    match outcome:
        case Preflight():
            return Response(status_code=status.HTTP_204_NO_CONTENT)

        case Admitted(tier=tier):
            return JSONResponse(
                status_code=status.HTTP_200_OK,
                content={"message": f"Success (Role: {tier})", "role": tier},
                headers={HEADER_REMAINING: REMAINING_AVAILABLE, HEADER_ROLE: tier},
            )

        case Bypassed():
            return JSONResponse(
                status_code=status.HTTP_200_OK,
                content={"message": "Success (Rate limit overridden)", "override": True},
                headers={HEADER_REMAINING: REMAINING_OVERRIDDEN},
            )

        case RateLimited(exceeded=exceeded, tier=tier):
            retry_after = exceeded.retry_after
            headers = {HEADER_EXCEEDED: "true", HEADER_ROLE: tier}
            if retry_after is not None:
                headers[HEADER_RETRY_AFTER] = str(retry_after)
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"error": "Too Many Requests", "retry_after": retry_after},
                headers=headers,
            )

        case IdentificationFailed(error=error):
            return _error(status.HTTP_400_BAD_REQUEST, error.message)

        case OverrideApplied(client_id=client_id, override=override):
            # json.dumps keeps the JSON spelling of the flag ("true"/"false")
            return JSONResponse(
                status_code=status.HTTP_200_OK,
                content={"message": f"Override for {client_id} set to {json.dumps(override)}."},
            )

        case AdminRejected(error=error):
            return _render_admin_rejection(error)

        case StoreFailed():
            return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error")

        case InternalFailure(error=error):
            logger.error(
                "unhandled_exception",
                extra={
                    "error_type": type(error).__name__,
                    "error_msg": str(error),
                    "request_id": get_request_id(),
                },
            )
            return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error")

        case _:
            assert_never(outcome)


def render_outcome(outcome: Outcome, cors: CorsPolicy) -> Response:
    """Map an outcome to its HTTP response, with CORS headers attached.

    Args:
        outcome: Result of the dispatcher or the admin pipeline.
        cors: CORS policy of the server instance.

    Returns:
        Response ready to be returned from a route.
    """
    return apply_cors_headers(_render(outcome), cors)
