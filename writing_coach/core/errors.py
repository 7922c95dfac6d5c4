"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional; each error fills in what applies to it.
    """

    hint: str
    min_value: int
    max_value: int
    actual_value: int
    retry_after: float
    required_tier: str
    model: str
    cause: str
    attempts: int
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input/config validation fails."""


class AuthenticationAppError(AppError):
    """Raised when an endpoint needs a signed-in caller and has none."""


class ForbiddenAppError(AppError):
    """Raised when the caller is refused outright (e.g. bot signature)."""


class NotFoundAppError(AppError):
    """Raised when a requested record does not exist for the caller."""


class ModelAccessDeniedError(AppError):
    """Raised when the caller's tier is below the capability's minimum."""

    @property
    def required_tier(self) -> str:
        return (self.details or {}).get("required_tier", "")


@dataclass
class RateLimitedAppError(AppError):
    """Raised when admission control rejects the request.

    Attributes:
        retry_after_seconds: Whole seconds until a slot frees up (>= 1).
        is_anonymous: Whether the caller was limited on the anonymous tier.
    """

    retry_after_seconds: int = 1
    is_anonymous: bool = True


class LLMAppError(AppError):
    """Raised when LLM provider/client operations fail."""


class ProviderTimeoutError(LLMAppError):
    """A single provider attempt exceeded its deadline. Retryable."""


class ProviderTransientError(LLMAppError):
    """The provider failed in a way that is expected to clear up. Retryable."""


class ProviderMalformedOutputError(LLMAppError):
    """The provider answered with a payload that is not the coaching schema.

    Never retried: the same prompt is assumed to reproduce the same defect.
    """


class ProviderUnavailableError(LLMAppError):
    """Retries were exhausted; ``details["cause"]`` is ``timeout`` or ``transient``."""


class PersistenceAppError(AppError):
    """Raised by record stores; never surfaced on the coaching path."""


class RecordConflictError(PersistenceAppError):
    """A record with the same partition and id already exists."""


class StoreUnavailableError(PersistenceAppError):
    """The record store could not be reached or was never initialized."""


def describe_validation_errors(errors: Sequence[Mapping[str, Any]]) -> str:
    """Summarize the first pydantic error as ``"loc: msg"``.

    >>> describe_validation_errors([{"loc": ("body", "goal"), "msg": "bad"}])
    'goal: bad'
    """
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    return f"{location}: {message}" if location else message
