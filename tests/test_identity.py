"""Unit tests for client identification."""

from __future__ import annotations

import pytest
from starlette.requests import Request

from rate_gate.core.errors import IdentificationAppError
from rate_gate.core.identity import (
    IdentityKind,
    client_address,
    parse_bearer_token,
    resolve_identity,
)


def make_request(
    headers: dict[str, str] | None = None,
    client: tuple[str, int] | None = ("10.0.0.1", 5000),
) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": client,
    }
    return Request(scope)


class TestParseBearerToken:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("Bearer abc", "abc"),
            ("bearer abc", "abc"),
            ("BEARER   abc  ", "abc"),
            ("Bearer premium-user", "premium-user"),
        ],
    )
    def test_extracts_token(self, value: str, expected: str) -> None:
        assert parse_bearer_token(value) == expected

    @pytest.mark.parametrize("value", [None, "", "Bearer", "Bearer   ", "Basic abc", "abc"])
    def test_rejects_non_bearer_values(self, value: str | None) -> None:
        assert parse_bearer_token(value) is None


class TestResolveIdentity:
    def test_token_takes_precedence_over_address(self) -> None:
        identity = resolve_identity(make_request({"Authorization": "Bearer c1"}))

        assert identity.value == "c1"
        assert identity.kind is IdentityKind.TOKEN
        assert identity.override_eligible is True

    def test_falls_back_to_client_address(self) -> None:
        identity = resolve_identity(make_request())

        assert identity.value == "10.0.0.1"
        assert identity.kind is IdentityKind.ADDRESS
        assert identity.override_eligible is False

    def test_malformed_authorization_falls_back_to_address(self) -> None:
        identity = resolve_identity(make_request({"Authorization": "Basic Zm9vOmJhcg=="}))

        assert identity.kind is IdentityKind.ADDRESS

    def test_fails_without_token_or_address(self) -> None:
        with pytest.raises(IdentificationAppError) as exc_info:
            resolve_identity(make_request(client=None))

        assert exc_info.value.code == "identifier_unavailable"

    def test_token_still_works_without_address(self) -> None:
        identity = resolve_identity(make_request({"Authorization": "Bearer c1"}, client=None))

        assert identity.value == "c1"


class TestClientAddress:
    def test_forwarded_for_ignored_by_default(self) -> None:
        request = make_request({"X-Forwarded-For": "203.0.113.7"})

        assert client_address(request) == "10.0.0.1"

    def test_forwarded_for_first_hop_when_trusted(self) -> None:
        request = make_request({"X-Forwarded-For": "203.0.113.7, 10.0.0.2"})

        assert client_address(request, trust_forwarded_for=True) == "203.0.113.7"

    def test_trusted_but_absent_forwarded_for_uses_peer(self) -> None:
        assert client_address(make_request(), trust_forwarded_for=True) == "10.0.0.1"

    def test_forwarded_for_without_peer(self) -> None:
        request = make_request({"X-Forwarded-For": "203.0.113.7"}, client=None)

        assert client_address(request, trust_forwarded_for=True) == "203.0.113.7"
        assert client_address(request) is None
