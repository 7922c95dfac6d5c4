"""Resilient orchestration of the coaching provider call.

Every attempt runs under its own deadline. Timeouts and transient provider
failures are retried with exponential backoff up to a fixed bound; malformed
output and other provider errors fail immediately. The retry loop is an
explicit state machine:

    ATTEMPTING -> SUCCEEDED
    ATTEMPTING -> BACKOFF -> ATTEMPTING      (retryable failure, attempts left)
    ATTEMPTING -> EXHAUSTED                  (retryable failure, none left)
    ATTEMPTING -> FAILED                     (non-retryable provider error)

Malformed output is detected after SUCCEEDED, while parsing, and is never
retried.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable

from pydantic import ValidationError

from writing_coach.adapters.llm.base import AbstractLLMClient, LLMCompletion
from writing_coach.core.config import LLMSettings
from writing_coach.core.errors import (
    LLMAppError,
    ProviderMalformedOutputError,
    ProviderTimeoutError,
    ProviderTransientError,
    ProviderUnavailableError,
)
from writing_coach.core.model_access import Capability, provider_model_for
from writing_coach.schemas.coach import CoachRequest, CoachResult, ProviderCoachOutput, TokenUsage
from writing_coach.services.prompts import PROMPT_VERSION, build_system_prompt, build_user_prompt

logger = logging.getLogger(__name__)

Sleeper = Callable[[float], Awaitable[None]]


class AttemptState(str, Enum):
    ATTEMPTING = "attempting"
    BACKOFF = "backoff"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"
    FAILED = "failed"


@dataclass(frozen=True)
class RetryPolicy:
    """Bounds and schedule for provider retries.

    Attributes:
        max_retries: Additional attempts after the first one.
        backoff_base_seconds: Delay before the first retry; doubles afterwards.
        attempt_timeout_seconds: Deadline for each individual attempt.
    """

    max_retries: int = 2
    backoff_base_seconds: float = 1.0
    attempt_timeout_seconds: float = 30.0

    @classmethod
    def from_settings(cls, llm_settings: LLMSettings) -> "RetryPolicy":
        return cls(
            max_retries=llm_settings.max_retries,
            backoff_base_seconds=llm_settings.backoff_base_seconds,
            attempt_timeout_seconds=llm_settings.timeout_seconds,
        )

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def backoff_for(self, retry_number: int) -> float:
        """Delay before retry ``retry_number`` (1-based): base, 2*base, 4*base..."""
        return self.backoff_base_seconds * (2 ** (retry_number - 1))

    def schedule(self) -> list[float]:
        return [self.backoff_for(n) for n in range(1, self.max_retries + 1)]


def parse_provider_output(content: str) -> ProviderCoachOutput:
    """Validate raw provider content against the coaching schema.

    Raises:
        ProviderMalformedOutputError: If the content is not JSON or does not
            match the schema.
    """
    try:
        payload = json.loads(content)
    except json.JSONDecodeError as exc:
        raise ProviderMalformedOutputError(
            code="provider_malformed_output",
            message="The AI returned an invalid response format",
            details={"cause": "invalid_json"},
        ) from exc

    if not isinstance(payload, dict):
        raise ProviderMalformedOutputError(
            code="provider_malformed_output",
            message="The AI returned an invalid response format",
            details={"cause": "not_an_object"},
        )

    try:
        return ProviderCoachOutput.model_validate(payload)
    except ValidationError as exc:
        raise ProviderMalformedOutputError(
            code="provider_malformed_output",
            message="The AI returned an invalid response format",
            details={"cause": "schema_violation", "context": {"errors": exc.error_count()}},
        ) from exc


def build_result(request: CoachRequest, output: ProviderCoachOutput, completion: LLMCompletion) -> CoachResult:
    usage = None
    if completion.usage is not None:
        usage = TokenUsage(
            input_tokens=completion.usage.input_tokens,
            output_tokens=completion.usage.output_tokens,
        )

    return CoachResult(
        original_text=request.text,
        minimal_fix=output.minimal_fix,
        upgraded_text=output.upgraded_text,
        variants=output.variants,
        feedback=tuple(output.feedback),
        phrase_bank=tuple(output.phrase_bank),
        error_tags=tuple(output.error_tags),
        register_note=output.register_note,
        alternative=output.alternative,
        model_used=completion.model,
        usage=usage,
    )


class CoachOrchestrator:
    """Calls the provider for one coaching request and returns a validated result.

    Attributes:
        llm: Provider client; one call is one attempt.
        policy: Retry bounds and backoff schedule.
    """

    def __init__(
        self,
        llm: AbstractLLMClient,
        policy: RetryPolicy | None = None,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self.llm = llm
        self.policy = policy or RetryPolicy()
        self._sleep = sleep

    async def invoke(self, request: CoachRequest, capability: Capability) -> CoachResult:
        """Run the coaching request against the provider.

        Raises:
            ProviderUnavailableError: Retries exhausted on timeouts/transient errors.
            ProviderMalformedOutputError: Provider answered outside the schema.
            LLMAppError: Any other provider failure.
        """
        model = provider_model_for(capability)
        system_prompt = build_system_prompt(request)
        user_prompt = build_user_prompt(request)

        completion = await self._complete(model, system_prompt, user_prompt)

        try:
            output = parse_provider_output(completion.content)
        except ProviderMalformedOutputError as exc:
            logger.error(
                "provider.malformed_output",
                extra={
                    "model": model,
                    "cause": (exc.details or {}).get("cause"),
                    "content_chars": len(completion.content),
                },
            )
            raise

        return build_result(request, output, completion)

    async def _attempt(self, model: str, system_prompt: str, user_prompt: str) -> LLMCompletion:
        try:
            return await asyncio.wait_for(
                self.llm.generate_json(user_prompt, model=model, system_prompt=system_prompt),
                timeout=self.policy.attempt_timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            raise ProviderTimeoutError(
                code="provider_timeout",
                message="The AI took too long to respond",
                details={"cause": "timeout"},
            ) from exc

    async def _complete(self, model: str, system_prompt: str, user_prompt: str) -> LLMCompletion:
        state = AttemptState.ATTEMPTING
        attempt = 0
        completion: LLMCompletion | None = None
        last_error: LLMAppError | None = None

        while True:
            if state is AttemptState.ATTEMPTING:
                attempt += 1
                logger.info(
                    "provider.attempt",
                    extra={
                        "model": model,
                        "attempt": attempt,
                        "max_attempts": self.policy.max_attempts,
                        "prompt_version": PROMPT_VERSION,
                    },
                )
                try:
                    completion = await self._attempt(model, system_prompt, user_prompt)
                    state = AttemptState.SUCCEEDED
                except (ProviderTimeoutError, ProviderTransientError) as exc:
                    last_error = exc
                    state = AttemptState.BACKOFF if attempt < self.policy.max_attempts else AttemptState.EXHAUSTED
                except LLMAppError as exc:
                    last_error = exc
                    state = AttemptState.FAILED

            elif state is AttemptState.BACKOFF:
                delay = self.policy.backoff_for(attempt)
                logger.warning(
                    "provider.retry",
                    extra={
                        "model": model,
                        "attempt": attempt,
                        "cause": _cause_of(last_error),
                        "backoff_s": delay,
                    },
                )
                await self._sleep(delay)
                state = AttemptState.ATTEMPTING

            elif state is AttemptState.SUCCEEDED:
                if completion is None:
                    raise RuntimeError("attempt succeeded without a completion")
                usage = completion.usage
                logger.info(
                    "provider.completed",
                    extra={
                        "model": completion.model,
                        "attempts": attempt,
                        "input_tokens": usage.input_tokens if usage else 0,
                        "output_tokens": usage.output_tokens if usage else 0,
                    },
                )
                return completion

            elif state is AttemptState.EXHAUSTED:
                cause = _cause_of(last_error)
                logger.error(
                    "provider.exhausted",
                    extra={"model": model, "attempts": attempt, "cause": cause},
                )
                raise ProviderUnavailableError(
                    code="provider_unavailable",
                    message=(
                        "The AI took too long to respond. Please try again with shorter text."
                        if cause == "timeout"
                        else "The AI service is temporarily unavailable."
                    ),
                    details={"cause": cause, "attempts": attempt},
                ) from last_error

            else:
                if last_error is None:
                    raise RuntimeError(f"attempt ended in {state.value} without an error")
                logger.error(
                    "provider.failed",
                    extra={"model": model, "attempt": attempt, "error_code": last_error.code},
                )
                raise last_error


def _cause_of(error: LLMAppError | None) -> str:
    return "timeout" if isinstance(error, ProviderTimeoutError) else "transient"
