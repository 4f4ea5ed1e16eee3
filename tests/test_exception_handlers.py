"""Tests for global exception handlers.

Errors that escape a route are rendered through the same outcome mapping as
routed failures: JSON ``{"error": ...}`` bodies, CORS headers and no leakage.
"""

import asyncio
import json
from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from rate_gate.core.errors import (
    AdminAuthError,
    AppError,
    IdentificationAppError,
    StoreAppError,
    ValidationAppError,
)
from rate_gate.core.exception_handlers import (
    general_exception_handler,
    outcome_for_error,
    setup_exception_handlers,
)
from rate_gate.core.outcomes import (
    AdminRejected,
    IdentificationFailed,
    InternalFailure,
    StoreFailed,
)


@pytest.fixture
def app_with_handlers() -> FastAPI:
    """Create FastAPI app with exception handlers registered."""
    app = FastAPI()
    setup_exception_handlers(app)
    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    return TestClient(app_with_handlers)


def _body(response) -> dict:
    raw = response.body if isinstance(response.body, bytes) else bytes(response.body)
    return json.loads(raw.decode())


class TestOutcomeForError:
    def test_maps_known_errors(self) -> None:
        ident = IdentificationAppError(code="identifier_unavailable", message="who?")
        store = StoreAppError(code="store_unavailable", message="down")
        admin = AdminAuthError(code="invalid_admin_key", message="Invalid admin key")

        assert outcome_for_error(ident) == IdentificationFailed(error=ident)
        assert outcome_for_error(store) == StoreFailed(error=store)
        assert outcome_for_error(admin) == AdminRejected(error=admin)

    def test_other_errors_are_internal(self) -> None:
        exc = ValidationAppError(code="x", message="y")

        assert outcome_for_error(exc) == InternalFailure(error=exc)


class TestAppErrorHandler:
    def test_store_error_returns_generic_500(self, client, app_with_handlers) -> None:
        @app_with_handlers.get("/test-store")
        async def test_endpoint():
            raise StoreAppError(code="store_unavailable", message="Redis at 10.0.0.5 refused")

        response = client.get("/test-store")

        assert response.status_code == 500
        assert response.json() == {"error": "Internal Server Error"}
        assert "10.0.0.5" not in response.text
        assert response.headers["Access-Control-Allow-Origin"] == "*"

    def test_identification_error_returns_400(self, client, app_with_handlers) -> None:
        @app_with_handlers.get("/test-ident")
        async def test_endpoint():
            raise IdentificationAppError(code="identifier_unavailable", message="Unable to identify")

        response = client.get("/test-ident")

        assert response.status_code == 400
        assert response.json() == {"error": "Unable to identify"}

    def test_admin_auth_error_returns_403(self, client, app_with_handlers) -> None:
        @app_with_handlers.get("/test-admin")
        async def test_endpoint():
            raise AdminAuthError(code="invalid_admin_key", message="Invalid admin key")

        response = client.get("/test-admin")

        assert response.status_code == 403


class TestGeneralExceptionHandler:
    def test_unexpected_exception_handler_registered(self, app_with_handlers: FastAPI) -> None:
        assert Exception in app_with_handlers.exception_handlers
        assert AppError in app_with_handlers.exception_handlers

    def test_general_exception_handler_never_leaks_details(self) -> None:
        request = MagicMock()
        request.url.path = "/test"
        request.method = "GET"
        request.app.state.context = None

        exc = RuntimeError("database connection failed")
        response = asyncio.run(general_exception_handler(request, exc))

        assert response.status_code == 500
        assert _body(response) == {"error": "Internal Server Error"}
        text = bytes(response.body).decode()
        assert "database connection" not in text
        assert "Traceback" not in text
        assert response.headers["Access-Control-Allow-Origin"] == "*"

    def test_unhandled_route_error_rendered(self, app_with_handlers: FastAPI) -> None:
        @app_with_handlers.get("/test-crash")
        async def test_endpoint():
            raise ValueError("secret detail")

        client = TestClient(app_with_handlers, raise_server_exceptions=False)
        response = client.get("/test-crash")

        assert response.status_code == 500
        assert "secret detail" not in response.text
