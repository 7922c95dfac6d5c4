"""OpenAI LLM client adapter."""

from typing import Any

import openai
from openai import AsyncOpenAI

from writing_coach.adapters.llm.base import AbstractLLMClient, LLMCompletion, LLMUsage
from writing_coach.core.errors import LLMAppError, ProviderTimeoutError, ProviderTransientError

# SDK failures that are expected to clear up on their own.
TRANSIENT_ERRORS: tuple[type[Exception], ...] = (
    openai.APIConnectionError,
    openai.RateLimitError,
    openai.InternalServerError,
)


def classify_openai_error(exc: Exception) -> LLMAppError:
    """Map an OpenAI SDK exception onto the provider error taxonomy.

    ``APITimeoutError`` subclasses ``APIConnectionError``, so it is checked
    first.
    """
    if isinstance(exc, openai.APITimeoutError):
        return ProviderTimeoutError(
            code="provider_timeout",
            message="OpenAI request timed out",
            details={"cause": "timeout"},
        )
    if isinstance(exc, TRANSIENT_ERRORS):
        return ProviderTransientError(
            code="provider_transient",
            message=f"Transient OpenAI error: {type(exc).__name__}",
            details={"cause": "transient"},
        )
    return LLMAppError(
        code="provider_error",
        message=f"OpenAI API error: {type(exc).__name__}",
    )


class OpenAIClient(AbstractLLMClient):
    """Client for calling OpenAI chat completions in JSON mode.

    Uses the official OpenAI Python SDK with async support. The SDK's own
    retries are disabled; the orchestrator owns the retry policy.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        timeout_seconds: float = 30.0,
        temperature: float = 0.3,
        max_output_tokens: int = 2500,
    ) -> None:
        """Initialize OpenAI async client.

        Args:
            api_key: OpenAI API key for authentication.
            base_url: Optional custom base URL for OpenAI API.
            timeout_seconds: Timeout for a single request in seconds.
            temperature: Default sampling temperature.
            max_output_tokens: Default completion token cap.
        """
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout_seconds,
            max_retries=0,
        )
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens

    async def generate_json(
        self,
        prompt: str,
        *,
        model: str,
        system_prompt: str | None = None,
        **kwargs: Any,
    ) -> LLMCompletion:
        """Generate a JSON completion using OpenAI chat completions.

        Args:
            prompt: User prompt to send to the model.
            model: OpenAI model id (e.g. "gpt-4o-mini").
            system_prompt: System instructions; a JSON-only reminder when omitted.
            **kwargs: Provider options (temperature, max_tokens, top_p, seed).

        Returns:
            LLMCompletion with raw content and token usage.

        Raises:
            ProviderTimeoutError, ProviderTransientError, LLMAppError.
        """
        messages = [
            {
                "role": "system",
                "content": system_prompt or "Output JSON only. No extra text or markdown formatting.",
            },
            {"role": "user", "content": prompt},
        ]

        request_params: dict[str, Any] = {
            "model": model,
            "messages": messages,
            "temperature": kwargs.pop("temperature", self.temperature),
            "max_tokens": kwargs.pop("max_tokens", self.max_output_tokens),
            "response_format": {"type": "json_object"},
        }

        allowed_params = {"top_p", "seed"}
        for param in allowed_params:
            if param in kwargs:
                request_params[param] = kwargs[param]

        try:
            response = await self.client.chat.completions.create(**request_params)
        except openai.OpenAIError as exc:
            raise classify_openai_error(exc) from exc

        content = response.choices[0].message.content if response.choices else None
        usage = None
        if response.usage is not None:
            usage = LLMUsage(
                input_tokens=response.usage.prompt_tokens or 0,
                output_tokens=response.usage.completion_tokens or 0,
            )

        return LLMCompletion(
            content=(content or "").strip(),
            model=response.model or model,
            usage=usage,
        )
