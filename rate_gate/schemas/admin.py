"""Pydantic schemas for the admin override endpoint."""

from __future__ import annotations

from pydantic import BaseModel, Field, StrictBool, StrictStr


class OverrideRequest(BaseModel):
    """Body of ``POST /admin/override-rate-limit``.

    Types are strict: ``"true"`` is not a boolean and ``123`` is not a client id.
    Only the ``clientId`` spelling is accepted; ``client_id`` is a schema error.
    """

    client_id: StrictStr = Field(
        ...,
        alias="clientId",
        description="Bearer token identifier to toggle the bypass for.",
    )
    override: StrictBool = Field(
        ...,
        description="True disables rate limiting for the identifier.",
    )


class OverrideResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    error: str
