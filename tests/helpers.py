"""Shared test doubles and payload builders."""

import base64
import json

from writing_coach.adapters.llm.base import AbstractLLMClient, LLMCompletion, LLMUsage

BROWSER_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)

SAMPLE_TEXT = "Ich habe gestern nach Berlin gefahren und es war sehr schon."


def principal_header(user_id: str = "user-1", roles: tuple[str, ...] = ("anonymous", "authenticated")) -> str:
    """Encode a client principal the way the identity provider does."""
    payload = {"identityProvider": "aad", "userId": user_id, "userRoles": list(roles)}
    return base64.b64encode(json.dumps(payload).encode("utf-8")).decode("ascii")


def provider_payload(**overrides) -> dict:
    payload = {
        "minimalFix": "Ich bin gestern nach Berlin gefahren und es war sehr schön.",
        "upgradedText": "Gestern bin ich nach Berlin gefahren, und es war wirklich schön.",
        "variants": {
            "colloquial": "Bin gestern nach Berlin, war echt schön.",
            "neutral": "Ich bin gestern nach Berlin gefahren. Es war sehr schön.",
            "formal": "Gestern reiste ich nach Berlin; es war sehr angenehm.",
        },
        "feedback": [
            {
                "issue": "Perfekt mit 'sein'",
                "whyItMatters": "Verben der Bewegung bilden das Perfekt mit 'sein'.",
                "quickRule": "fahren → ist gefahren",
                "example": "Ich bin nach Hause gefahren.",
                "tag": "verb_tense",
            }
        ],
        "phraseBank": [
            {"phrase": "nach Berlin fahren", "translation": "to go to Berlin", "level": "B1"},
            {"phrase": "es war wirklich schön", "translation": "it was really nice", "level": "B1"},
        ],
        "errorTags": ["verb_tense", "spelling"],
        "registerNote": "Neutral register fits a message to a friend.",
    }
    payload.update(overrides)
    return payload


class FakeLLMClient(AbstractLLMClient):
    """Scripted provider: each call pops the next step.

    A step is either a string (returned as content), an exception instance
    (raised) or a coroutine function (awaited, for slow responses).
    """

    def __init__(self, steps=None, model: str = "gpt-4o-mini") -> None:
        self.steps = list(steps or [])
        self.model = model
        self.calls: list[dict] = []

    async def generate_json(self, prompt, *, model, system_prompt=None, **kwargs) -> LLMCompletion:
        self.calls.append({"prompt": prompt, "model": model, "system_prompt": system_prompt})
        step = self.steps.pop(0) if self.steps else json.dumps(provider_payload())
        if isinstance(step, BaseException):
            raise step
        if callable(step):
            step = await step()
        return LLMCompletion(content=step, model=model, usage=LLMUsage(input_tokens=120, output_tokens=340))


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


async def no_sleep(_seconds: float) -> None:
    return None


