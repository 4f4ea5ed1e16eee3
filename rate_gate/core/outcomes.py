"""Closed set of request outcomes.

The dispatcher and the admin pipeline return one of these instead of raising;
``rate_gate.core.responses.render_outcome`` turns them into HTTP responses.
"""

from __future__ import annotations

from dataclasses import dataclass

from rate_gate.adapters.rate_limit.base import RateLimitExceeded
from rate_gate.core.errors import (
    AdminAppError,
    IdentificationAppError,
    StoreAppError,
)


@dataclass(frozen=True)
class Preflight:
    """CORS preflight (OPTIONS) request."""


@dataclass(frozen=True)
class IdentificationFailed:
    error: IdentificationAppError


@dataclass(frozen=True)
class Bypassed:
    """Override active: admitted without touching the limiter."""

    identifier: str


@dataclass(frozen=True)
class Admitted:
    identifier: str
    tier: str


@dataclass(frozen=True)
class RateLimited:
    exceeded: RateLimitExceeded
    tier: str


@dataclass(frozen=True)
class StoreFailed:
    error: StoreAppError


@dataclass(frozen=True)
class InternalFailure:
    """Any unexpected exception; rendered as a generic 500."""

    error: BaseException


@dataclass(frozen=True)
class OverrideApplied:
    client_id: str
    override: bool


@dataclass(frozen=True)
class AdminRejected:
    error: AdminAppError


AdmissionOutcome = (
    Preflight
    | IdentificationFailed
    | Bypassed
    | Admitted
    | RateLimited
    | StoreFailed
    | InternalFailure
)

AdminOutcome = OverrideApplied | AdminRejected | InternalFailure

Outcome = AdmissionOutcome | OverrideApplied | AdminRejected
