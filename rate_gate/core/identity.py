"""Client identification for admission control.

A request is identified by its bearer token when one is present, otherwise by
the client's network address. Only token-derived identities may be overridden.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from fastapi import Request

from rate_gate.core.errors import IdentificationAppError

BEARER_SCHEME = "bearer"


class IdentityKind(str, enum.Enum):
    TOKEN = "token"
    ADDRESS = "address"


@dataclass(frozen=True)
class Identity:
    value: str
    kind: IdentityKind

    @property
    def override_eligible(self) -> bool:
        return self.kind is IdentityKind.TOKEN


def parse_bearer_token(authorization: str | None) -> str | None:
    """Extract the token from an ``Authorization: Bearer <token>`` value.

    Examples:
        >>> parse_bearer_token("Bearer abc")
        'abc'
        >>> parse_bearer_token("Basic abc") is None
        True
        >>> parse_bearer_token("Bearer   ") is None
        True
    """
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != BEARER_SCHEME:
        return None
    token = token.strip()
    return token or None


def client_address(request: Request, *, trust_forwarded_for: bool = False) -> str | None:
    """Return the client's address, or None if the transport does not expose one."""
    if trust_forwarded_for:
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            first = forwarded.split(",")[0].strip()
            if first:
                return first
    if request.client and request.client.host:
        return request.client.host
    return None


def resolve_identity(request: Request, *, trust_forwarded_for: bool = False) -> Identity:
    """Resolve the identifier a request is rate limited under.

    Raises:
        IdentificationAppError: If neither a token nor an address is available.
    """
    token = parse_bearer_token(request.headers.get("Authorization"))
    if token:
        return Identity(value=token, kind=IdentityKind.TOKEN)

    address = client_address(request, trust_forwarded_for=trust_forwarded_for)
    if address:
        return Identity(value=address, kind=IdentityKind.ADDRESS)

    raise IdentificationAppError(
        code="identifier_unavailable",
        message="Unable to identify client: provide an Authorization Bearer token",
    )
