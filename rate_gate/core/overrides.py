"""Administrative rate-limit bypass flags.

Overrides are held in process memory only. With several server processes
behind a load balancer, a flag set through one process is invisible to the
others, while the request logs stay shared through the store. Overrides are
also lost on restart.
"""

from __future__ import annotations

import logging
import threading

from rate_gate.core.logging import hash_identifier

logger = logging.getLogger(__name__)


class OverrideStore:
    """Mapping of token-derived identifier to bypass flag.

    Written only by the admin pipeline; read by the dispatcher. Absent
    identifiers are not overridden.
    """

    def __init__(self) -> None:
        self._flags: dict[str, bool] = {}
        self._lock = threading.Lock()

    def get(self, identifier: str) -> bool:
        with self._lock:
            return self._flags.get(identifier, False)

    def set(self, identifier: str, enabled: bool) -> None:
        with self._lock:
            previous = self._flags.get(identifier, False)
            self._flags[identifier] = enabled

        logger.info(
            "override.updated",
            extra={
                "identifier_hash": hash_identifier(identifier),
                "override": enabled,
                "previous": previous,
            },
        )

    def snapshot(self) -> dict[str, bool]:
        """Return a copy of all explicitly set flags."""
        with self._lock:
            return dict(self._flags)
