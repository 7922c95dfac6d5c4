"""Pytest configuration and fixtures shared across all test modules.

Environment defaults are set before any application import so settings are
built from them instead of a developer's ``.env`` file.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("LLM_PROVIDER", "openai")
os.environ.setdefault("LLM_API_KEY", "test-key-123")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from typing import Callable

import pytest

from tests.helpers import FakeClock, FakeLLMClient, SAMPLE_TEXT, no_sleep
from writing_coach.adapters.rate_limit.in_memory import InMemorySlidingWindowRateLimiter
from writing_coach.adapters.store import InMemoryRecordStore
from writing_coach.core.config import AppSettings
from writing_coach.schemas.coach import CoachRequest
from writing_coach.services.coach_pipeline import CoachPipeline
from writing_coach.services.orchestrator import CoachOrchestrator, RetryPolicy
from writing_coach.services.persistence import PersistenceSink
from writing_coach.services.repositories import PhraseRepository, SessionRepository


@pytest.fixture
def app_settings() -> AppSettings:
    return AppSettings(
        rate_limit_anonymous_per_window=5,
        rate_limit_authenticated_per_window=20,
        rate_limit_window_seconds=3600,
        persist_anonymous=False,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def limiter(app_settings: AppSettings, clock: FakeClock) -> InMemorySlidingWindowRateLimiter:
    return InMemorySlidingWindowRateLimiter(
        anonymous_limit=app_settings.rate_limit_anonymous_per_window,
        authenticated_limit=app_settings.rate_limit_authenticated_per_window,
        window_seconds=app_settings.rate_limit_window_seconds,
        clock=clock,
    )


@pytest.fixture
def fake_llm() -> FakeLLMClient:
    return FakeLLMClient()


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def sink(store: InMemoryRecordStore) -> PersistenceSink:
    return PersistenceSink(SessionRepository(store), PhraseRepository(store))


@pytest.fixture
def pipeline_factory(
    limiter, fake_llm, sink, app_settings
) -> Callable[..., CoachPipeline]:
    def factory(**overrides) -> CoachPipeline:
        llm = overrides.pop("llm", fake_llm)
        orchestrator = CoachOrchestrator(llm, RetryPolicy(attempt_timeout_seconds=5.0), sleep=no_sleep)
        return CoachPipeline(
            overrides.pop("limiter", limiter),
            orchestrator,
            overrides.pop("sink", sink),
            overrides.pop("app_settings", app_settings),
        )

    return factory


@pytest.fixture
def coach_request() -> CoachRequest:
    return CoachRequest(text=SAMPLE_TEXT)
