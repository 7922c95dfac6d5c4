"""LLM adapter layer - abstracts over text providers."""

from writing_coach.adapters.llm.base import AbstractLLMClient, LLMCompletion, LLMUsage
from writing_coach.adapters.llm.factory import create_llm_client
from writing_coach.adapters.llm.openai_client import OpenAIClient

__all__ = [
    "AbstractLLMClient",
    "LLMCompletion",
    "LLMUsage",
    "OpenAIClient",
    "create_llm_client",
]
