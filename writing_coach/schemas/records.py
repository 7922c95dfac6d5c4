"""Stored records derived from coaching results.

Both record types are partitioned by ``user_key`` (the caller key).
"""

from __future__ import annotations

import hashlib
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from writing_coach.schemas.coach import CoachRequest, CoachResult, PhraseEntry


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def phrase_record_id(user_key: str, target_language: str, phrase: str) -> str:
    """Deterministic phrase id so saving the same phrase twice collides.

    Examples:
        >>> phrase_record_id("user:1", "de", "Guten Tag") == phrase_record_id("user:1", "de", "  guten tag ")
        True
    """
    normalized = " ".join(phrase.split()).casefold()
    raw = f"{user_key}::{target_language}::{normalized}".encode("utf-8")
    return hashlib.sha256(raw).hexdigest()[:32]


class PhraseStatus(str, Enum):
    LEARNING = "learning"
    LEARNED = "learned"


class RecordModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        protected_namespaces=(),
    )


class SessionRecord(RecordModel):
    """One accepted coaching request and its result."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_key: str
    type: Literal["session"] = "session"
    created_at: datetime = Field(default_factory=_utcnow)
    request: CoachRequest
    result: CoachResult
    # Denormalized for filtering
    target_language: str
    target_level: str
    model_used: str | None = None

    @classmethod
    def from_result(cls, user_key: str, request: CoachRequest, result: CoachResult) -> "SessionRecord":
        return cls(
            user_key=user_key,
            request=request,
            result=result,
            target_language=request.target_language.value,
            target_level=request.target_level.value,
            model_used=result.model_used,
        )


class PhraseRecord(RecordModel):
    """Phrase-bank entry kept for spaced review."""

    id: str
    user_key: str
    type: Literal["phrase"] = "phrase"
    source_session_id: str | None = None
    phrase: str
    pattern: str | None = None
    translation: str | None = None
    phrase_level: str | None = None
    grammatical_info: str | None = None
    notes: str | None = None
    tags: tuple[str, ...] = ()
    target_language: str
    target_level: str
    status: PhraseStatus = PhraseStatus.LEARNING
    is_favorite: bool = False
    created_at: datetime = Field(default_factory=_utcnow)
    learned_at: datetime | None = None

    @classmethod
    def from_entry(
        cls,
        entry: PhraseEntry,
        *,
        user_key: str,
        session_id: str | None,
        request: CoachRequest,
    ) -> "PhraseRecord":
        language = request.target_language.value
        return cls(
            id=phrase_record_id(user_key, language, entry.phrase),
            user_key=user_key,
            source_session_id=session_id,
            phrase=entry.phrase,
            pattern=entry.pattern,
            translation=entry.translation,
            phrase_level=entry.level,
            grammatical_info=entry.grammatical_info,
            notes=entry.notes,
            tags=entry.tags,
            target_language=language,
            target_level=request.target_level.value,
        )

    def with_status(self, status: PhraseStatus) -> "PhraseRecord":
        learned_at = _utcnow() if status is PhraseStatus.LEARNED else None
        return self.model_copy(update={"status": status, "learned_at": learned_at})

    def with_favorite_toggled(self) -> "PhraseRecord":
        return self.model_copy(update={"is_favorite": not self.is_favorite})
