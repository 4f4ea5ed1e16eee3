"""Catch-all route: every request not matched elsewhere is admission controlled."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response

from rate_gate.core.context import ServerContext, get_server_context
from rate_gate.core.outcomes import AdmissionOutcome, InternalFailure
from rate_gate.core.responses import render_outcome

router = APIRouter(tags=["Admission"])

ADMISSION_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


@router.api_route("/{path:path}", methods=ADMISSION_METHODS)
async def admission(
    request: Request,
    context: Annotated[ServerContext, Depends(get_server_context)],
) -> Response:
    """Admit, deny or bypass the request and render the outcome.

    Returns:
        200 when admitted or overridden, 429 when rate limited, 204 for CORS
        preflight, 400 when the client cannot be identified, 500 on failure.
    """
    try:
        outcome: AdmissionOutcome = await context.dispatcher.dispatch(request)
    except Exception as exc:
        outcome = InternalFailure(error=exc)
    return render_outcome(outcome, context.cors)
