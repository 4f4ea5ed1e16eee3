"""Per-request admission control.

The dispatcher composes identification, the override bypass, tier selection
and the sliding-window limiter. It never raises for expected failures:
everything is folded into an ``AdmissionOutcome`` that the HTTP layer renders.
"""

from __future__ import annotations

import logging

from fastapi import Request

from rate_gate.adapters.rate_limit.base import RateLimitExceeded
from rate_gate.core.errors import IdentificationAppError, StoreAppError
from rate_gate.core.identity import resolve_identity
from rate_gate.core.logging import hash_identifier
from rate_gate.core.outcomes import (
    AdmissionOutcome,
    Admitted,
    Bypassed,
    IdentificationFailed,
    Preflight,
    RateLimited,
    StoreFailed,
)
from rate_gate.core.overrides import OverrideStore
from rate_gate.core.tiers import TierRegistry

logger = logging.getLogger(__name__)


class AdmissionDispatcher:
    """Decides the fate of each inbound request.

    Holds references to long-lived state owned by the server context; it
    keeps no per-request state of its own.
    """

    def __init__(
        self,
        *,
        overrides: OverrideStore,
        tiers: TierRegistry,
        trust_forwarded_for: bool = False,
    ) -> None:
        self._overrides = overrides
        self._tiers = tiers
        self._trust_forwarded_for = trust_forwarded_for

    async def dispatch(self, request: Request) -> AdmissionOutcome:
        """Run admission control for one request.

        Args:
            request: Incoming HTTP request.

        Returns:
            AdmissionOutcome describing the response to render.
        """
        if request.method == "OPTIONS":
            return Preflight()

        try:
            identity = resolve_identity(
                request, trust_forwarded_for=self._trust_forwarded_for
            )
        except IdentificationAppError as exc:
            logger.warning("admission.unidentified", extra={"error_code": exc.code})
            return IdentificationFailed(error=exc)

        identifier_hash = hash_identifier(identity.value)

        if identity.override_eligible and self._overrides.get(identity.value):
            logger.info(
                "admission.bypassed",
                extra={"identifier_hash": identifier_hash},
            )
            return Bypassed(identifier=identity.value)

        tier = self._tiers.select(identity.value)

        try:
            decision = await tier.limiter.check(identity.value)
        except StoreAppError as exc:
            logger.error(
                "admission.store_failed",
                extra={
                    "identifier_hash": identifier_hash,
                    "tier": tier.name,
                    "error_code": exc.code,
                    "cause_type": type(exc.cause).__name__ if exc.cause else None,
                },
            )
            return StoreFailed(error=exc)

        if isinstance(decision, RateLimitExceeded):
            return RateLimited(exceeded=decision, tier=tier.name)

        logger.info(
            "admission.admitted",
            extra={
                "identifier_hash": identifier_hash,
                "identity_kind": identity.kind.value,
                "tier": tier.name,
            },
        )
        return Admitted(identifier=identity.value, tier=tier.name)
