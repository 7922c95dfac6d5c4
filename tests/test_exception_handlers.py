"""Tests for global exception handlers.

Validates that all exception types are handled consistently with
proper HTTP status codes, error format, and no information leakage.
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel

from writing_coach.core.errors import (
    AppError,
    AuthenticationAppError,
    ForbiddenAppError,
    ModelAccessDeniedError,
    NotFoundAppError,
    ProviderUnavailableError,
    RateLimitedAppError,
    StoreUnavailableError,
    ValidationAppError,
)
from writing_coach.core.exception_handlers import general_exception_handler, setup_exception_handlers


@pytest.fixture
def app_with_handlers() -> FastAPI:
    """Create FastAPI app with exception handlers registered."""
    app = FastAPI()
    setup_exception_handlers(app)
    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    """Create test client with handlers enabled."""
    return TestClient(app_with_handlers)


def _raise_at(app: FastAPI, path: str, exc: Exception) -> None:
    @app.get(path)
    async def endpoint():
        raise exc


class TestAppErrorHandler:
    """Test handler for AppError and subclasses."""

    def test_validation_error_returns_400(self, client: TestClient, app_with_handlers: FastAPI):
        _raise_at(
            app_with_handlers,
            "/test-validation",
            ValidationAppError(
                code="text_too_short",
                message="Text must be at least 10 characters",
                details={"min_value": 10, "actual_value": 8},
            ),
        )

        response = client.get("/test-validation")

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["kind"] == "validation_error"
        assert error["detail"] == "Text must be at least 10 characters"
        assert error["details"]["min_value"] == 10
        assert "request_id" in error

    def test_rate_limited_sets_retry_after(self, client: TestClient, app_with_handlers: FastAPI):
        _raise_at(
            app_with_handlers,
            "/test-rate",
            RateLimitedAppError(
                code="rate_limited",
                message="You've reached the request limit.",
                retry_after_seconds=42,
                is_anonymous=False,
            ),
        )

        response = client.get("/test-rate")

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "42"
        error = response.json()["error"]
        assert error["kind"] == "rate_limited"
        assert error["retryAfterSeconds"] == 42
        assert error["isAnonymous"] is False
        assert "request_id" in error

    def test_model_access_denied_returns_required_tier(self, client: TestClient, app_with_handlers: FastAPI):
        _raise_at(
            app_with_handlers,
            "/test-tier",
            ModelAccessDeniedError(
                code="model_access_denied",
                message="This model requires a premium plan.",
                details={"required_tier": "Premium", "model": "o3"},
            ),
        )

        response = client.get("/test-tier")

        assert response.status_code == 403
        assert response.json()["error"]["requiredTier"] == "Premium"

    @pytest.mark.parametrize(
        "exc",
        [
            ForbiddenAppError(code="forbidden", message="Forbidden"),
            AuthenticationAppError(code="authentication_required", message="Sign in"),
        ],
    )
    def test_forbidden_kinds_return_403(self, exc, client: TestClient, app_with_handlers: FastAPI):
        _raise_at(app_with_handlers, "/test-forbidden", exc)

        response = client.get("/test-forbidden")

        assert response.status_code == 403
        assert response.json()["error"]["kind"] == "forbidden"

    def test_not_found_returns_404(self, client: TestClient, app_with_handlers: FastAPI):
        _raise_at(app_with_handlers, "/test-missing", NotFoundAppError(code="session_not_found", message="nope"))

        assert client.get("/test-missing").status_code == 404

    def test_provider_error_returns_502_without_detail(self, client: TestClient, app_with_handlers: FastAPI):
        _raise_at(
            app_with_handlers,
            "/test-llm",
            ProviderUnavailableError(
                code="provider_unavailable",
                message="upstream 503 from api.openai.com",
                details={"cause": "transient", "attempts": 3},
            ),
        )

        response = client.get("/test-llm")

        assert response.status_code == 502
        error = response.json()["error"]
        assert error["kind"] == "provider_error"
        assert "openai" not in response.text
        assert "attempts" not in response.text

    def test_other_app_errors_return_500(self, client: TestClient, app_with_handlers: FastAPI):
        _raise_at(app_with_handlers, "/test-store", StoreUnavailableError(code="store_unavailable", message="db down"))

        response = client.get("/test-store")

        assert response.status_code == 500
        assert response.json()["error"]["kind"] == "internal_error"
        assert "db down" not in response.text


class TestRequestValidationHandler:
    def test_body_errors_become_validation_error(self, client: TestClient, app_with_handlers: FastAPI):
        class Body(BaseModel):
            text: str

        @app_with_handlers.post("/test-body")
        async def endpoint(body: Body):
            return body

        response = client.post("/test-body", json={"wrong": 1})

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["kind"] == "validation_error"
        assert "text" in error["detail"]


class TestGeneralExceptionHandler:
    """Test fallback handler for unexpected exceptions."""

    def test_unexpected_exception_handler_registered(self, app_with_handlers: FastAPI):
        assert Exception in app_with_handlers.exception_handlers

    def test_general_exception_handler_logic(self):
        request = AsyncMock()
        request.url.path = "/test"
        request.method = "GET"

        exc = RuntimeError("Unexpected error: database connection failed")
        response = asyncio.run(general_exception_handler(request, exc))

        data = json.loads(bytes(response.body).decode())
        assert response.status_code == 500
        assert data["error"]["kind"] == "internal_error"
        assert "database connection" not in data["error"]["message"]
        assert "request_id" in data["error"]

    def test_general_exception_handler_never_leaks_stack_trace(self):
        request = AsyncMock()
        request.url.path = "/test"
        request.method = "GET"

        response = asyncio.run(general_exception_handler(request, ValueError("Test error with details")))

        response_text = bytes(response.body).decode()
        assert "Traceback" not in response_text
        assert "File \"" not in response_text
        assert "ValueError" not in response_text


class TestErrorHandlerIntegration:
    """Integration tests for exception handler setup."""

    def test_multiple_handler_setups_does_not_fail(self):
        app = FastAPI()

        setup_exception_handlers(app)
        setup_exception_handlers(app)

        assert AppError in app.exception_handlers
