"""Fire-and-forget persistence of coaching results.

``PersistenceSink.record`` schedules a detached asyncio task and returns at
once; the HTTP response never waits on it. The task has its own error
boundary: whatever goes wrong is logged and dropped.

Design:
- The session write and the phrase-batch write run independently, so a
  failure of one neither blocks nor rolls back the other.
- Phrase ids are derived from the phrase itself, which makes re-saving a
  known phrase a conflict that the repository skips.
"""

from __future__ import annotations

import asyncio
import logging

from writing_coach.core.identity import hash_caller_key
from writing_coach.schemas.coach import CoachRequest, CoachResult
from writing_coach.schemas.records import PhraseRecord, SessionRecord
from writing_coach.services.repositories import PhraseRepository, SessionRepository

logger = logging.getLogger(__name__)


class PersistenceSink:
    """Best-effort recorder of accepted coaching results."""

    def __init__(self, sessions: SessionRepository, phrases: PhraseRepository) -> None:
        self.sessions = sessions
        self.phrases = phrases
        # Strong references; the event loop only keeps weak ones to tasks.
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    def record(self, caller_key: str, request: CoachRequest, result: CoachResult) -> None:
        """Schedule persistence of one result and return immediately.

        Must be called from a running event loop.
        """
        task = asyncio.get_running_loop().create_task(
            self._persist(caller_key, request, result),
            name=f"persist:{hash_caller_key(caller_key)}",
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def drain(self) -> None:
        """Wait for every scheduled write to finish (shutdown and tests)."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def _persist(self, caller_key: str, request: CoachRequest, result: CoachResult) -> None:
        key_hash = hash_caller_key(caller_key)
        try:
            if not self.sessions.store.available:
                logger.debug("persistence.skipped", extra={"reason": "store_unavailable"})
                return

            session = SessionRecord.from_result(caller_key, request, result)
            phrases = [
                PhraseRecord.from_entry(entry, user_key=caller_key, session_id=session.id, request=request)
                for entry in result.phrase_bank
            ]

            session_outcome, phrase_outcome = await asyncio.gather(
                self.sessions.save(session),
                self.phrases.save_batch(phrases),
                return_exceptions=True,
            )

            if isinstance(session_outcome, BaseException):
                logger.warning(
                    "persistence.session_failed",
                    extra={"key_hash": key_hash, "error_type": type(session_outcome).__name__},
                )
            if isinstance(phrase_outcome, BaseException):
                logger.warning(
                    "persistence.phrases_failed",
                    extra={"key_hash": key_hash, "error_type": type(phrase_outcome).__name__},
                )
                written = 0
            else:
                written = len(phrase_outcome.written)

            logger.info(
                "persistence.done",
                extra={
                    "key_hash": key_hash,
                    "session_saved": not isinstance(session_outcome, BaseException),
                    "session_id": session.id,
                    "phrases_total": len(phrases),
                    "phrases_written": written,
                },
            )
        except Exception:
            logger.exception("persistence.unexpected_error", extra={"key_hash": key_hash})
