from __future__ import annotations

import pytest

from rate_gate.core.app_factory import create_app


@pytest.fixture
def schema(make_settings) -> dict:
    return create_app(make_settings()).openapi()


def test_security_schemes_registered(schema: dict) -> None:
    schemes = schema["components"]["securitySchemes"]

    assert schemes["BearerAuth"]["scheme"] == "bearer"
    assert schemes["AdminKeyAuth"]["name"] == "X-Admin-Key"


def test_per_path_security(schema: dict) -> None:
    paths = schema["paths"]

    assert paths["/health"]["get"]["security"] == []
    assert paths["/admin/override-rate-limit"]["post"]["security"] == [{"AdminKeyAuth": []}]
    assert paths["/{path}"]["get"]["security"] == [{"BearerAuth": []}, {}]


def test_override_request_body_documented(schema: dict) -> None:
    body = schema["paths"]["/admin/override-rate-limit"]["post"]["requestBody"]
    properties = body["content"]["application/json"]["schema"]["properties"]

    assert set(properties) == {"clientId", "override"}


def test_tags_metadata(schema: dict) -> None:
    names = {tag["name"] for tag in schema["tags"]}

    assert {"Admission", "Admin", "Health"} <= names
