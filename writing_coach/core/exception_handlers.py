"""Global exception handlers for consistent error responses.

Every error leaves the API as ``{"error": {"kind": ..., ...}}`` plus the
request_id for tracing.

Design:
- ValidationAppError / body schema errors → 400 ``validation_error``
- ForbiddenAppError, AuthenticationAppError → 403 ``forbidden``
- ModelAccessDeniedError → 403 ``model_access_denied`` with ``requiredTier``
- NotFoundAppError → 404 ``not_found``
- RateLimitedAppError → 429 ``rate_limited`` with ``Retry-After``
- LLMAppError family → 502 ``provider_error`` (no provider detail leaked)
- Anything else → 500 ``internal_error`` (safety net)
"""

import logging
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from writing_coach.core.errors import (
    AppError,
    AuthenticationAppError,
    ForbiddenAppError,
    LLMAppError,
    ModelAccessDeniedError,
    NotFoundAppError,
    RateLimitedAppError,
    ValidationAppError,
    describe_validation_errors,
)
from writing_coach.core.logging import get_request_id

logger = logging.getLogger(__name__)


def _error_response(status_code: int, content: dict[str, Any], headers: dict[str, str] | None = None) -> JSONResponse:
    content["request_id"] = get_request_id()
    return JSONResponse(status_code=status_code, content={"error": content}, headers=headers)


def _render_app_error(exc: AppError) -> tuple[int, dict[str, Any], dict[str, str] | None]:
    """Translate a domain error into status code, payload and headers."""
    if isinstance(exc, RateLimitedAppError):
        return (
            429,
            {
                "kind": "rate_limited",
                "message": exc.message,
                "retryAfterSeconds": exc.retry_after_seconds,
                "isAnonymous": exc.is_anonymous,
            },
            {"Retry-After": str(exc.retry_after_seconds)},
        )
    if isinstance(exc, ModelAccessDeniedError):
        return (
            403,
            {"kind": "model_access_denied", "message": exc.message, "requiredTier": exc.required_tier},
            None,
        )
    if isinstance(exc, (ForbiddenAppError, AuthenticationAppError)):
        return 403, {"kind": "forbidden", "code": exc.code, "message": exc.message}, None
    if isinstance(exc, ValidationAppError):
        content: dict[str, Any] = {"kind": "validation_error", "code": exc.code, "detail": exc.message}
        if exc.details:
            content["details"] = exc.details
        return 400, content, None
    if isinstance(exc, NotFoundAppError):
        return 404, {"kind": "not_found", "message": exc.message}, None
    if isinstance(exc, LLMAppError):
        return (
            502,
            {"kind": "provider_error", "message": "An error occurred processing your request."},
            None,
        )
    return 500, {"kind": "internal_error", "message": "An unexpected error occurred."}, None


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with a consistent JSON shape.

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with the status code and payload for the error kind.
    """
    status_code, content, headers = _render_app_error(exc)

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_kind": content["kind"],
            "error_message": exc.message,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_path": request.url.path,
        },
    )

    return _error_response(status_code, content, headers)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render body/query schema errors as ``validation_error``."""
    errors = exc.errors()
    detail = describe_validation_errors(errors)

    logger.warning(
        "request_validation_failed",
        extra={"request_path": request.url.path, "error_count": len(errors)},
    )
    return _error_response(
        400,
        {"kind": "validation_error", "code": "invalid_request", "detail": detail},
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs details for debugging while returning a generic message; no stack
    traces reach the client.
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
        },
        exc_info=exc,
    )
    return _error_response(
        500,
        {"kind": "internal_error", "message": "An unexpected error occurred. Please try again later."},
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with the FastAPI app.

    Example:
        >>> from fastapi import FastAPI
        >>> app = FastAPI()
        >>> setup_exception_handlers(app)
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(RequestValidationError)(request_validation_handler)
    app.exception_handler(Exception)(general_exception_handler)
