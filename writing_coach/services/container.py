"""Process-wide service graph.

The app factory builds one ``ServiceContainer`` and stores it on
``app.state.services``; route dependencies read from there. Tests build their
own container with fakes and hand it to ``create_app``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from writing_coach.adapters.llm.base import AbstractLLMClient
from writing_coach.adapters.llm.factory import create_llm_client
from writing_coach.adapters.rate_limit.base import AbstractRateLimiter
from writing_coach.adapters.store import AbstractRecordStore, InMemoryRecordStore, NullRecordStore
from writing_coach.core.config import Settings, settings as default_settings
from writing_coach.core.rate_limit import build_rate_limiter
from writing_coach.services.coach_pipeline import CoachPipeline
from writing_coach.services.orchestrator import CoachOrchestrator, RetryPolicy
from writing_coach.services.persistence import PersistenceSink
from writing_coach.services.repositories import PhraseRepository, SessionRepository

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    limiter: AbstractRateLimiter
    llm: AbstractLLMClient
    store: AbstractRecordStore
    sessions: SessionRepository
    phrases: PhraseRepository
    sink: PersistenceSink
    orchestrator: CoachOrchestrator
    pipeline: CoachPipeline

    def use_store(self, store: AbstractRecordStore) -> None:
        """Point both repositories at ``store`` (the sink shares them)."""
        self.store = store
        self.sessions.store = store
        self.phrases.store = store

    async def startup(self) -> None:
        """Initialize the store, degrading to a no-op store on failure."""
        try:
            await self.store.initialize()
            logger.info("store.ready", extra={"store": type(self.store).__name__})
        except Exception as exc:
            logger.error(
                "store.init_failed",
                extra={"store": type(self.store).__name__, "error_type": type(exc).__name__},
            )
            self.use_store(NullRecordStore())

    async def shutdown(self) -> None:
        pending = self.sink.pending
        await self.sink.drain()
        logger.info("services.stopped", extra={"drained_writes": pending})


def build_services(
    app_settings: Settings | None = None,
    *,
    llm: AbstractLLMClient | None = None,
    store: AbstractRecordStore | None = None,
    limiter: AbstractRateLimiter | None = None,
) -> ServiceContainer:
    """Wire the default service graph from settings.

    Any component may be passed in to replace the default one.
    """
    cfg = app_settings or default_settings

    limiter = limiter or build_rate_limiter(cfg.app)
    llm = llm or create_llm_client(cfg.llm)
    store = store or InMemoryRecordStore()

    sessions = SessionRepository(store)
    phrases = PhraseRepository(store)
    sink = PersistenceSink(sessions, phrases)
    orchestrator = CoachOrchestrator(llm, RetryPolicy.from_settings(cfg.llm))
    pipeline = CoachPipeline(limiter, orchestrator, sink, cfg.app)

    return ServiceContainer(
        limiter=limiter,
        llm=llm,
        store=store,
        sessions=sessions,
        phrases=phrases,
        sink=sink,
        orchestrator=orchestrator,
        pipeline=pipeline,
    )
