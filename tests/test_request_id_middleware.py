from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from rate_gate.core.app_factory import create_app
from rate_gate.core.config import AppSettings, LogSettings, RateLimitSettings, Settings


@pytest.fixture
def client(make_settings) -> TestClient:
    return TestClient(create_app(make_settings()))


def test_preserves_incoming_request_id_header(client: TestClient):
    incoming_id = "test-request-id-123"
    resp = client.get("/health", headers={"X-Request-ID": incoming_id})

    assert resp.status_code == 200
    assert resp.headers.get("X-Request-ID") == incoming_id


def test_generates_request_id_when_missing(client: TestClient):
    resp = client.get("/health")

    assert resp.status_code == 200
    generated = resp.headers.get("X-Request-ID")
    assert generated
    assert resp.headers.get("X-Request-Duration-ms") is not None


def test_request_id_on_rate_limited_responses(client: TestClient):
    headers = {"Authorization": "Bearer c1", "X-Request-ID": "req-429"}
    for _ in range(5):
        client.get("/", headers=headers)

    resp = client.get("/", headers=headers)

    assert resp.status_code == 429
    assert resp.headers.get("X-Request-ID") == "req-429"


def test_request_id_header_follows_app_settings():
    settings = Settings(
        app=AppSettings(),
        rate_limit=RateLimitSettings(store="memory"),
        log=LogSettings(level="WARNING", request_id_header="X-Correlation-ID"),
    )
    custom = TestClient(create_app(settings))

    resp = custom.get("/health", headers={"X-Correlation-ID": "corr-1"})

    assert resp.headers.get("X-Correlation-ID") == "corr-1"
    assert "X-Request-ID" not in resp.headers
