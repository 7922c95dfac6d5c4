"""Rate limiting wiring for the coaching pipeline.

This module builds the limiter from settings and turns a rejected check into
a ``RateLimitedAppError`` the HTTP layer knows how to render.

Rate limiting strategy:
- Sliding window per caller key.
- Anonymous callers are keyed by client IP, signed-in callers by user id,
  with a higher limit for the latter.
"""

from __future__ import annotations

import logging

from writing_coach.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from writing_coach.adapters.rate_limit.in_memory import InMemorySlidingWindowRateLimiter
from writing_coach.core.config import AppSettings, settings
from writing_coach.core.errors import RateLimitedAppError
from writing_coach.core.identity import CallerIdentity

logger = logging.getLogger(__name__)


def build_rate_limiter(app_settings: AppSettings | None = None) -> AbstractRateLimiter:
    """Create the process-wide limiter from configuration."""

    cfg = app_settings or settings.app
    return InMemorySlidingWindowRateLimiter(
        anonymous_limit=cfg.rate_limit_anonymous_per_window,
        authenticated_limit=cfg.rate_limit_authenticated_per_window,
        window_seconds=cfg.rate_limit_window_seconds,
        cleanup_interval_seconds=cfg.rate_limit_cleanup_interval_seconds,
    )


def enforce_rate_limit(limiter: AbstractRateLimiter, caller: CallerIdentity) -> RateLimitResult:
    """Consume one request from the caller's budget.

    Args:
        limiter: Limiter owning the window state.
        caller: Resolved caller of the current request.

    Returns:
        The admitting RateLimitResult.

    Raises:
        RateLimitedAppError: When the caller's window is full.
    """

    key_type = "user" if caller.is_authenticated else "ip"
    result = limiter.check(caller.key, caller.tier)

    if not result.limited:
        logger.info(
            "rate_limit.allowed",
            extra={
                "key_type": key_type,
                "key_hash": caller.key_hash,
                "limit": result.limit,
                "current_count": result.current_count,
            },
        )
        return result

    logger.warning(
        "rate_limit.exceeded",
        extra={
            "key_type": key_type,
            "key_hash": caller.key_hash,
            "limit": result.limit,
            "current_count": result.current_count,
            "retry_after_s": result.retry_after_seconds,
        },
    )
    raise RateLimitedAppError(
        code="rate_limited",
        message="You've reached the request limit.",
        details={"retry_after": result.retry_after_seconds},
        retry_after_seconds=result.retry_after_seconds,
        is_anonymous=not caller.is_authenticated,
    )
