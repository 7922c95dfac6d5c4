from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class LLMUsage:
	input_tokens: int = 0
	output_tokens: int = 0


@dataclass(frozen=True)
class LLMCompletion:
	"""Raw provider answer: unparsed content plus accounting."""

	content: str
	model: str
	usage: LLMUsage | None = None


class AbstractLLMClient(ABC):
	"""Interface for LLM clients that produce JSON text outputs."""

	@abstractmethod
	async def generate_json(
		self,
		prompt: str,
		*,
		model: str,
		system_prompt: str | None = None,
		**kwargs: Any,
	) -> LLMCompletion:
		"""Request a JSON-formatted completion from the model.

		A single call is a single attempt; retrying is the caller's job.

		Args:
			prompt: User prompt to send to the model.
			model: Provider model id.
			system_prompt: Optional system instructions.
			**kwargs: Provider-specific options (e.g., temperature, max_tokens).

		Returns:
			LLMCompletion with the raw content (parsing is the caller's job).

		Raises:
			ProviderTimeoutError: If the provider did not answer in time.
			ProviderTransientError: For failures worth retrying (network, 429, 5xx).
			LLMAppError: For any other provider failure.
		"""
		...
