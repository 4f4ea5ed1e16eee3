from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response

from rate_gate.core.admin import handle_override_request
from rate_gate.core.context import ServerContext, get_server_context
from rate_gate.core.outcomes import AdminOutcome, InternalFailure
from rate_gate.core.responses import render_outcome
from rate_gate.schemas.admin import ErrorResponse, OverrideRequest, OverrideResponse

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.post(
    "/override-rate-limit",
    response_model=OverrideResponse,
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        415: {"model": ErrorResponse},
    },
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {
                "application/json": {
                    "schema": OverrideRequest.model_json_schema(by_alias=True)
                }
            },
        }
    },
)
async def override_rate_limit(
    request: Request,
    context: Annotated[ServerContext, Depends(get_server_context)],
) -> Response:
    """Enable or disable the rate-limit bypass for a bearer-token identifier.

    The body is read and validated by hand (not through a FastAPI body
    parameter) so content-type, JSON and schema failures keep their own
    status codes and messages.
    """
    try:
        outcome: AdminOutcome = await handle_override_request(
            request, context.overrides, context.settings.app
        )
    except Exception as exc:
        outcome = InternalFailure(error=exc)
    return render_outcome(outcome, context.cors)
