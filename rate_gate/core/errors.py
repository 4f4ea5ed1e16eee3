"""Application-level exception types.

Every failure the admission and admin paths can produce is one of these
classes. They are never rendered directly: the dispatcher and the admin
pipeline fold them into outcomes (see ``rate_gate.core.outcomes``).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    code: str
    message: str
    hint: str
    operation: str
    key: str
    provided_type: str
    http_status: int
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input/config validation fails."""


class IdentificationAppError(AppError):
    """Raised when neither a bearer token nor a client address is available."""


@dataclass
class StoreAppError(AppError):
    """Raised for any failure talking to the shared store.

    Attributes:
        cause: Original transport/protocol exception.
    """

    cause: BaseException | None = None


class AdminAppError(AppError):
    """Base class for rejected admin override requests."""


class AdminAuthError(AdminAppError):
    """Raised when the admin key is missing or invalid."""


@dataclass
class AdminContentTypeError(AdminAppError):
    """Raised when the admin request is not declared as JSON."""

    provided_type: str = ""


class AdminParseError(AdminAppError):
    """Raised when the admin request body is not valid JSON."""


@dataclass
class AdminSchemaError(AdminAppError):
    """Raised when the parsed admin body does not match the override schema."""

    body: Any = None
