"""Admin key authentication for the override endpoint.

Disabled by default (the override endpoint is meant for trusted networks).
When ``APP_ADMIN_KEY_REQUIRED=true`` the ``X-Admin-Key`` header must match
one of the comma-separated ``APP_ADMIN_KEYS``.
"""

from __future__ import annotations

import hashlib
import hmac
import logging

from rate_gate.core.config import AppSettings
from rate_gate.core.errors import AdminAuthError

logger = logging.getLogger(__name__)

ADMIN_KEY_HEADER = "X-Admin-Key"


def parse_api_keys(keys_string: str | None) -> set[str]:
    """Parse comma-separated keys into a set.

    Examples:
        >>> sorted(parse_api_keys("key1, key2 , key3 "))
        ['key1', 'key2', 'key3']
        >>> parse_api_keys(None)
        set()
    """
    if not keys_string:
        return set()

    return {key.strip() for key in keys_string.split(",") if key.strip()}


def validate_admin_key(provided_key: str | None, app_settings: AppSettings) -> None:
    """Check the admin key of an override request.

    Args:
        provided_key: Value of the X-Admin-Key header, if any.
        app_settings: Settings holding the admin key policy.

    Raises:
        AdminAuthError: If a key is required and missing, invalid or unconfigured.
    """
    if not app_settings.admin_key_required:
        return

    valid_keys = parse_api_keys(app_settings.admin_keys)
    if not valid_keys:
        logger.error(
            "admin_auth.failed",
            extra={"reason": "admin_keys_not_configured"},
        )
        raise AdminAuthError(
            code="admin_keys_not_configured",
            message="Admin authentication is enabled but no admin keys are configured",
            details={"hint": "Set APP_ADMIN_KEYS or disable with APP_ADMIN_KEY_REQUIRED=false"},
        )

    if not provided_key:
        logger.warning("admin_auth.failed", extra={"reason": "missing_admin_key"})
        raise AdminAuthError(
            code="missing_admin_key",
            message=f"Missing admin key. Provide {ADMIN_KEY_HEADER} header.",
        )

    if not any(hmac.compare_digest(provided_key, key) for key in valid_keys):
        logger.warning(
            "admin_auth.failed",
            extra={
                "reason": "invalid_admin_key",
                "admin_key_hash": hashlib.sha256(provided_key.encode()).hexdigest()[:16],
            },
        )
        raise AdminAuthError(
            code="invalid_admin_key",
            message="Invalid admin key",
        )
