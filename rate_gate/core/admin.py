"""Admin override request pipeline.

Steps run in order and stop at the first failure:

1. admin key (only when enabled)
2. Content-Type must include ``application/json``
3. body must parse as JSON
4. body must be ``{"clientId": str, "override": bool}``
5. apply the flag to the override store
"""

from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import Request
from pydantic import ValidationError

from rate_gate.core.auth import ADMIN_KEY_HEADER, validate_admin_key
from rate_gate.core.config import AppSettings
from rate_gate.core.errors import (
    AdminAppError,
    AdminContentTypeError,
    AdminParseError,
    AdminSchemaError,
)
from rate_gate.core.logging import hash_identifier
from rate_gate.core.outcomes import AdminOutcome, AdminRejected, OverrideApplied
from rate_gate.core.overrides import OverrideStore
from rate_gate.schemas.admin import OverrideRequest

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"


def check_content_type(content_type: str | None) -> None:
    """Reject requests whose Content-Type does not include application/json.

    Raises:
        AdminContentTypeError: Carrying the provided value ("" when missing).
    """
    provided = content_type or ""
    if JSON_CONTENT_TYPE not in provided.lower():
        logger.warning(
            "admin.invalid_content_type",
            extra={"provided_type": provided},
        )
        raise AdminContentTypeError(
            code="invalid_content_type",
            message=f"Invalid Content-Type: expected {JSON_CONTENT_TYPE}",
            details={"provided_type": provided},
            provided_type=provided,
        )


def parse_json_body(raw: bytes) -> Any:
    """Decode the request body as JSON.

    Raises:
        AdminParseError: If the body is not valid UTF-8 JSON.
    """
    try:
        return json.loads(raw)
    except ValueError as exc:
        logger.warning(
            "admin.invalid_json",
            extra={"error_msg": str(exc), "body_bytes": len(raw)},
        )
        raise AdminParseError(
            code="invalid_json",
            message="Invalid JSON body",
        ) from exc


def _describe_body(body: Any) -> dict[str, Any]:
    """Log fields for a rejected body; the client id is a token, so only its hash."""
    fields: dict[str, Any] = {"body_type": type(body).__name__}
    if isinstance(body, dict):
        fields["body_keys"] = sorted(str(key) for key in body)[:10]
        client_id = body.get("clientId")
        if isinstance(client_id, str):
            fields["client_id_hash"] = hash_identifier(client_id)
    return fields


def validate_override_body(body: Any) -> OverrideRequest:
    """Validate the parsed body against the override schema.

    Raises:
        AdminSchemaError: Carrying the rejected value.
    """
    if not isinstance(body, dict):
        logger.warning("admin.invalid_body", extra=_describe_body(body))
        raise AdminSchemaError(
            code="invalid_request_body",
            message="Invalid request body: expected { clientId: string, override: boolean }",
            body=body,
        )

    try:
        return OverrideRequest.model_validate(body)
    except ValidationError as exc:
        logger.warning(
            "admin.invalid_body",
            extra={**_describe_body(body), "error_count": exc.error_count()},
        )
        raise AdminSchemaError(
            code="invalid_request_body",
            message="Invalid request body: expected { clientId: string, override: boolean }",
            body=body,
        ) from exc


def apply_override(body: OverrideRequest, overrides: OverrideStore) -> OverrideApplied:
    overrides.set(body.client_id, body.override)
    return OverrideApplied(client_id=body.client_id, override=body.override)


async def handle_override_request(
    request: Request,
    overrides: OverrideStore,
    app_settings: AppSettings,
) -> AdminOutcome:
    """Run the admin pipeline for one request.

    Args:
        request: Incoming ``POST /admin/override-rate-limit`` request.
        overrides: Override store owned by the server context.
        app_settings: Settings holding the admin key policy.

    Returns:
        OverrideApplied on success, AdminRejected for any validation failure.
    """
    logger.info("admin.override_requested")
    try:
        validate_admin_key(request.headers.get(ADMIN_KEY_HEADER), app_settings)
        check_content_type(request.headers.get("content-type"))
        raw_body = parse_json_body(await request.body())
        body = validate_override_body(raw_body)
    except AdminAppError as exc:
        return AdminRejected(error=exc)

    return apply_override(body, overrides)
