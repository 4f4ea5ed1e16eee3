"""Rate limiter interfaces.

The dispatcher depends on this abstraction, not on the sliding-window
implementation or the store behind it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitAdmitted:
    """The request was admitted and recorded in the identifier's window."""

    identifier: str


@dataclass(frozen=True)
class RateLimitExceeded:
    """The identifier has used its budget for the current window.

    Attributes:
        identifier: Identifier that was denied.
        retry_after: Seconds until the oldest counted request leaves the
            window, or None when it could not be determined.
    """

    identifier: str
    retry_after: int | None = None


RateLimitDecision = RateLimitAdmitted | RateLimitExceeded


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    async def check(self, identifier: str) -> RateLimitDecision:
        """Decide whether ``identifier`` may issue one more request.

        Args:
            identifier: Bearer token or client address.

        Returns:
            RateLimitAdmitted or RateLimitExceeded.

        Raises:
            StoreAppError: If the backing store fails.
        """
        raise NotImplementedError
