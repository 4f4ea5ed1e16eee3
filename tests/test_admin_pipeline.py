"""Unit tests for the admin override pipeline."""

from __future__ import annotations

import logging

import pytest
from starlette.requests import Request

from rate_gate.core.admin import (
    check_content_type,
    handle_override_request,
    parse_json_body,
    validate_override_body,
)
from rate_gate.core.config import AppSettings
from rate_gate.core.errors import (
    AdminAuthError,
    AdminContentTypeError,
    AdminParseError,
    AdminSchemaError,
)
from rate_gate.core.logging import hash_identifier
from rate_gate.core.outcomes import AdminRejected, OverrideApplied
from rate_gate.core.overrides import OverrideStore


def make_request(body: bytes, headers: dict[str, str] | None = None) -> Request:
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/admin/override-rate-limit",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": ("127.0.0.1", 5000),
    }

    async def receive() -> dict:
        return {"type": "http.request", "body": body, "more_body": False}

    return Request(scope, receive)


JSON_HEADERS = {"Content-Type": "application/json"}


class TestContentType:
    @pytest.mark.parametrize(
        "value",
        ["application/json", "application/json; charset=utf-8", "Application/JSON"],
    )
    def test_accepts_json(self, value: str) -> None:
        check_content_type(value)

    @pytest.mark.parametrize("value", [None, "", "text/plain", "application/x-www-form-urlencoded"])
    def test_rejects_other_types(self, value: str | None) -> None:
        with pytest.raises(AdminContentTypeError) as exc_info:
            check_content_type(value)

        assert exc_info.value.code == "invalid_content_type"
        assert exc_info.value.provided_type == (value or "")


class TestParseJsonBody:
    def test_parses_object(self) -> None:
        assert parse_json_body(b'{"a": 1}') == {"a": 1}

    @pytest.mark.parametrize("raw", [b"", b"{", b"not json", b"\xff\xfe"])
    def test_rejects_invalid_json(self, raw: bytes) -> None:
        with pytest.raises(AdminParseError) as exc_info:
            parse_json_body(raw)

        assert exc_info.value.message == "Invalid JSON body"


class TestValidateOverrideBody:
    def test_accepts_valid_body(self) -> None:
        body = validate_override_body({"clientId": "c2", "override": True})

        assert body.client_id == "c2"
        assert body.override is True

    @pytest.mark.parametrize(
        "body",
        [
            [],
            "c2",
            None,
            {},
            {"clientId": "c2"},
            {"override": True},
            {"clientId": 123, "override": True},
            {"clientId": "c2", "override": "true"},
            {"clientId": "c2", "override": 1},
            {"client_id": "c2", "override": True},
        ],
    )
    def test_rejects_invalid_bodies(self, body) -> None:
        with pytest.raises(AdminSchemaError) as exc_info:
            validate_override_body(body)

        assert exc_info.value.code == "invalid_request_body"
        assert exc_info.value.body == body


class TestHandleOverrideRequest:
    @pytest.mark.asyncio
    async def test_applies_override(self) -> None:
        overrides = OverrideStore()
        request = make_request(b'{"clientId": "c2", "override": true}', JSON_HEADERS)

        outcome = await handle_override_request(request, overrides, AppSettings())

        assert outcome == OverrideApplied(client_id="c2", override=True)
        assert overrides.get("c2") is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("body", "headers", "error_type"),
        [
            (b'{"clientId": "c2", "override": true}', {"Content-Type": "text/plain"}, AdminContentTypeError),
            (b"{broken", JSON_HEADERS, AdminParseError),
            (b'{"clientId": "c2"}', JSON_HEADERS, AdminSchemaError),
        ],
    )
    async def test_rejections_leave_overrides_untouched(
        self, body: bytes, headers: dict, error_type: type
    ) -> None:
        overrides = OverrideStore()

        outcome = await handle_override_request(
            make_request(body, headers), overrides, AppSettings()
        )

        assert isinstance(outcome, AdminRejected)
        assert isinstance(outcome.error, error_type)
        assert overrides.snapshot() == {}

    @pytest.mark.asyncio
    async def test_admin_key_checked_before_content_type(self) -> None:
        app_settings = AppSettings(admin_key_required=True, admin_keys="k1")
        request = make_request(b"x", {"Content-Type": "text/plain"})

        outcome = await handle_override_request(request, OverrideStore(), app_settings)

        assert isinstance(outcome, AdminRejected)
        assert isinstance(outcome.error, AdminAuthError)

    @pytest.mark.asyncio
    async def test_valid_admin_key_is_accepted(self) -> None:
        app_settings = AppSettings(admin_key_required=True, admin_keys="k1")
        request = make_request(
            b'{"clientId": "c2", "override": false}',
            {**JSON_HEADERS, "X-Admin-Key": "k1"},
        )

        outcome = await handle_override_request(request, OverrideStore(), app_settings)

        assert outcome == OverrideApplied(client_id="c2", override=False)


def test_rejected_body_logs_client_id_as_hash(caplog) -> None:
    body = {"clientId": "premium-secret-token", "override": "yes"}

    with caplog.at_level(logging.WARNING, logger="rate_gate.core.admin"):
        with pytest.raises(AdminSchemaError):
            validate_override_body(body)

    record = next(r for r in caplog.records if r.getMessage() == "admin.invalid_body")
    assert record.client_id_hash == hash_identifier("premium-secret-token")
    assert record.body_keys == ["clientId", "override"]
    assert "premium-secret-token" not in repr(record.__dict__)
