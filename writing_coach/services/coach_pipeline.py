"""Coaching pipeline: admission control, access checks and orchestration.

Sequence for one submission:
1. Bot filter on the user-agent
2. Caller identity and tier
3. Sliding-window rate limit
4. Body parsing and input validation (schema, text length, known model)
5. Model access gate
6. Provider orchestration
7. Fire-and-forget persistence (after the result exists)

Each step either passes or raises a typed ``AppError``; nothing partial is
returned to the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from writing_coach.adapters.rate_limit.base import AbstractRateLimiter
from writing_coach.core.bot_filter import is_blocked
from writing_coach.core.config import AppSettings, settings
from writing_coach.core.errors import ForbiddenAppError, ValidationAppError, describe_validation_errors
from writing_coach.core.identity import CallerIdentity, IdentityFacts, resolve_caller
from writing_coach.core.model_access import Capability, enforce_model_access, parse_capability
from writing_coach.core.rate_limit import enforce_rate_limit
from writing_coach.schemas.coach import CoachRequest, CoachResult
from writing_coach.services.orchestrator import CoachOrchestrator
from writing_coach.services.persistence import PersistenceSink

logger = logging.getLogger(__name__)


class CoachPipeline:
    """Coordinates one coaching submission end to end.

    Attributes:
        limiter: Shared rate limiter (the only shared mutable state).
        orchestrator: Provider call with retries and output validation.
        sink: Background persistence of accepted results.
        app_settings: Validation bounds, rate-limit and persistence switches.
    """

    def __init__(
        self,
        limiter: AbstractRateLimiter,
        orchestrator: CoachOrchestrator,
        sink: PersistenceSink,
        app_settings: AppSettings | None = None,
    ) -> None:
        self.limiter = limiter
        self.orchestrator = orchestrator
        self.sink = sink
        self.app_settings = app_settings or settings.app

    def _check_user_agent(self, user_agent: str | None) -> None:
        if is_blocked(user_agent):
            logger.warning("bot.blocked", extra={"user_agent": (user_agent or "")[:120]})
            raise ForbiddenAppError(code="forbidden", message="Forbidden")

    def _parse(self, body: CoachRequest | bytes | str | Mapping[str, Any]) -> CoachRequest:
        """Build the request model from a raw body once the caller is admitted."""
        if isinstance(body, CoachRequest):
            return body
        try:
            if isinstance(body, (bytes, str)):
                return CoachRequest.model_validate_json(body)
            return CoachRequest.model_validate(body)
        except ValidationError as exc:
            raise ValidationAppError(
                code="invalid_request",
                message=describe_validation_errors(exc.errors()),
            ) from exc

    def _validate(self, request: CoachRequest) -> Capability:
        """Check text bounds and resolve the requested model.

        Raises:
            ValidationAppError: If the text is empty, too short or too long,
                or the model is unknown.
        """
        text = request.text
        min_chars = self.app_settings.min_text_chars
        max_chars = self.app_settings.max_text_chars

        if not text or not text.strip():
            raise ValidationAppError(
                code="text_required",
                message="Text is required",
                details={"min_value": min_chars, "actual_value": 0},
            )
        if len(text) < min_chars:
            raise ValidationAppError(
                code="text_too_short",
                message=f"Text must be at least {min_chars} characters",
                details={"min_value": min_chars, "actual_value": len(text)},
            )
        if len(text) > max_chars:
            raise ValidationAppError(
                code="text_too_long",
                message=f"Text must be {max_chars} characters or less",
                details={"max_value": max_chars, "actual_value": len(text)},
            )

        return parse_capability(request.model)

    def _should_persist(self, caller: CallerIdentity) -> bool:
        return caller.is_authenticated or self.app_settings.persist_anonymous

    async def submit(
        self,
        body: CoachRequest | bytes | str | Mapping[str, Any],
        *,
        user_agent: str | None,
        identity: IdentityFacts,
        client_address: str,
    ) -> CoachResult:
        """Run one coaching submission.

        Args:
            body: Request body, either parsed or as raw JSON. Raw bodies are
                only parsed after the bot filter and the rate limit, so
                malformed submissions still count against the caller.
            user_agent: Raw User-Agent header.
            identity: Identity facts from the identity provider.
            client_address: Caller's network address.

        Returns:
            CoachResult from the provider.

        Raises:
            ForbiddenAppError: Bot-like user-agent.
            RateLimitedAppError: Caller's window is full.
            ValidationAppError: Malformed body, bad text length or unknown model.
            ModelAccessDeniedError: Tier below the model's minimum.
            LLMAppError: Provider failure after local recovery.
        """
        self._check_user_agent(user_agent)

        caller = resolve_caller(identity, client_address)

        if self.app_settings.rate_limit_enabled:
            enforce_rate_limit(self.limiter, caller)

        request = self._parse(body)
        capability = self._validate(request)
        enforce_model_access(capability, caller.tier, is_admin=caller.is_admin)

        result = await self.orchestrator.invoke(request, capability)

        if self._should_persist(caller):
            self.sink.record(caller.key, request, result)

        logger.info(
            "coach.completed",
            extra={
                "key_hash": caller.key_hash,
                "tier": caller.tier.label,
                "model": capability.value,
                "feedback_items": len(result.feedback),
                "phrases": len(result.phrase_bank),
            },
        )
        return result
