"""Session and phrase repositories on top of the record store.

Both containers are partitioned by the caller key, so every operation is
scoped to one user and never scans other users' data.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from writing_coach.adapters.store.base import AbstractRecordStore
from writing_coach.core.errors import RecordConflictError
from writing_coach.core.identity import hash_caller_key
from writing_coach.schemas.records import PhraseRecord, PhraseStatus, SessionRecord

logger = logging.getLogger(__name__)

SESSIONS_CONTAINER = "sessions"
PHRASES_CONTAINER = "phrases"

MAX_SESSIONS_PAGE = 50
MAX_PHRASES_PAGE = 200


def _dump(record: SessionRecord | PhraseRecord) -> dict:
    return record.model_dump(mode="json", by_alias=True)


class SessionRepository:
    """Stores one record per accepted coaching request."""

    def __init__(self, store: AbstractRecordStore) -> None:
        self.store = store

    async def save(self, session: SessionRecord) -> SessionRecord:
        await self.store.create(SESSIONS_CONTAINER, session.user_key, _dump(session))
        logger.info(
            "session.saved",
            extra={"session_id": session.id, "key_hash": hash_caller_key(session.user_key)},
        )
        return session

    async def get(self, session_id: str, user_key: str) -> SessionRecord | None:
        raw = await self.store.read(SESSIONS_CONTAINER, user_key, session_id)
        return SessionRecord.model_validate(raw) if raw is not None else None

    async def list_by_user(self, user_key: str, limit: int = 20) -> list[SessionRecord]:
        """Newest sessions first, at most ``MAX_SESSIONS_PAGE``."""
        rows = await self.store.query(
            SESSIONS_CONTAINER,
            user_key,
            filters={"type": "session"},
            order_by="createdAt",
            descending=True,
            limit=min(limit, MAX_SESSIONS_PAGE),
        )
        return [SessionRecord.model_validate(row) for row in rows]

    async def delete_all_by_user(self, user_key: str) -> int:
        rows = await self.store.query(SESSIONS_CONTAINER, user_key, filters={"type": "session"})
        deleted = 0
        for row in rows:
            if await self.store.delete(SESSIONS_CONTAINER, user_key, row["id"]):
                deleted += 1
        logger.info(
            "session.deleted_all",
            extra={"count": deleted, "key_hash": hash_caller_key(user_key)},
        )
        return deleted


@dataclass
class PhraseBatchOutcome:
    """What happened to each phrase of a batch save."""

    written: list[str] = field(default_factory=list)
    skipped_conflicts: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    used_fallback: bool = False


class PhraseRepository:
    """Phrase bank storage with idempotent batch saves."""

    def __init__(self, store: AbstractRecordStore) -> None:
        self.store = store

    async def save_batch(self, phrases: list[PhraseRecord]) -> PhraseBatchOutcome:
        """Save phrases of one user, tolerating ones that already exist.

        Tries a single grouped write first. If the group fails for any reason,
        falls back to one write per phrase, skipping duplicate-id conflicts.
        Other per-phrase failures are logged and recorded in the outcome
        without stopping the remaining writes.
        """
        outcome = PhraseBatchOutcome()
        if not phrases:
            return outcome

        user_key = phrases[0].user_key
        key_hash = hash_caller_key(user_key)
        try:
            await self.store.create_batch(PHRASES_CONTAINER, user_key, [_dump(p) for p in phrases])
            outcome.written = [p.id for p in phrases]
            return outcome
        except Exception as exc:
            logger.warning(
                "phrase.batch_failed",
                extra={
                    "key_hash": key_hash,
                    "count": len(phrases),
                    "error_type": type(exc).__name__,
                },
            )

        outcome.used_fallback = True
        for phrase in phrases:
            try:
                await self.store.create(PHRASES_CONTAINER, user_key, _dump(phrase))
                outcome.written.append(phrase.id)
            except RecordConflictError:
                logger.debug("phrase.conflict_skipped", extra={"phrase_id": phrase.id})
                outcome.skipped_conflicts.append(phrase.id)
            except Exception as exc:
                logger.warning(
                    "phrase.write_failed",
                    extra={"phrase_id": phrase.id, "error_type": type(exc).__name__},
                )
                outcome.failed.append(phrase.id)

        logger.info(
            "phrase.batch_fallback_done",
            extra={
                "key_hash": key_hash,
                "written": len(outcome.written),
                "skipped": len(outcome.skipped_conflicts),
                "failed": len(outcome.failed),
            },
        )
        return outcome

    async def list_by_user(
        self,
        user_key: str,
        *,
        phrase_level: str | None = None,
        status: PhraseStatus | None = None,
        limit: int = 50,
    ) -> list[PhraseRecord]:
        filters: dict[str, str] = {"type": "phrase"}
        if phrase_level:
            filters["phraseLevel"] = phrase_level
        if status:
            filters["status"] = status.value

        rows = await self.store.query(
            PHRASES_CONTAINER,
            user_key,
            filters=filters,
            order_by="createdAt",
            descending=True,
            limit=min(limit, MAX_PHRASES_PAGE),
        )
        return [PhraseRecord.model_validate(row) for row in rows]

    async def _get(self, phrase_id: str, user_key: str) -> PhraseRecord | None:
        raw = await self.store.read(PHRASES_CONTAINER, user_key, phrase_id)
        if raw is None:
            logger.warning("phrase.not_found", extra={"phrase_id": phrase_id})
            return None
        return PhraseRecord.model_validate(raw)

    async def _replace(self, phrase: PhraseRecord) -> PhraseRecord | None:
        stored = await self.store.replace(PHRASES_CONTAINER, phrase.user_key, _dump(phrase))
        return PhraseRecord.model_validate(stored) if stored is not None else None

    async def update_status(self, phrase_id: str, user_key: str, status: PhraseStatus) -> PhraseRecord | None:
        existing = await self._get(phrase_id, user_key)
        if existing is None:
            return None
        updated = await self._replace(existing.with_status(status))
        logger.info("phrase.status_updated", extra={"phrase_id": phrase_id, "status": status.value})
        return updated

    async def toggle_favorite(self, phrase_id: str, user_key: str) -> PhraseRecord | None:
        existing = await self._get(phrase_id, user_key)
        if existing is None:
            return None
        updated = await self._replace(existing.with_favorite_toggled())
        logger.info(
            "phrase.favorite_toggled",
            extra={"phrase_id": phrase_id, "is_favorite": not existing.is_favorite},
        )
        return updated

    async def delete_all_by_user(self, user_key: str) -> int:
        rows = await self.store.query(PHRASES_CONTAINER, user_key, filters={"type": "phrase"})
        deleted = 0
        for row in rows:
            if await self.store.delete(PHRASES_CONTAINER, user_key, row["id"]):
                deleted += 1
        logger.info(
            "phrase.deleted_all",
            extra={"count": deleted, "key_hash": hash_caller_key(user_key)},
        )
        return deleted
