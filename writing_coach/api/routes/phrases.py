from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from writing_coach.api.deps import get_phrase_repository
from writing_coach.core.errors import NotFoundAppError
from writing_coach.core.identity import CallerIdentity, require_authenticated_caller
from writing_coach.schemas.coach import CamelModel, CefrLevel
from writing_coach.schemas.records import PhraseRecord, PhraseStatus
from writing_coach.services.repositories import MAX_PHRASES_PAGE, PhraseRepository

router = APIRouter(tags=["Phrases"])


class PhraseStatusUpdate(CamelModel):
    status: PhraseStatus


def _not_found() -> NotFoundAppError:
    return NotFoundAppError(code="phrase_not_found", message="Phrase not found")


@router.get("/phrases", response_model=list[PhraseRecord])
async def list_phrases(
    level: CefrLevel | None = Query(None, description="Filter by phrase level (A1 to C2)"),
    status: PhraseStatus | None = Query(None, description="Filter by learning status"),
    limit: int = Query(50, ge=1, le=MAX_PHRASES_PAGE),
    caller: CallerIdentity = Depends(require_authenticated_caller),
    phrases: PhraseRepository = Depends(get_phrase_repository),
) -> list[PhraseRecord]:
    """List the caller's phrase bank, newest first."""
    return await phrases.list_by_user(
        caller.key,
        phrase_level=level.value if level else None,
        status=status,
        limit=limit,
    )


@router.patch("/phrases/{phrase_id}", response_model=PhraseRecord)
async def update_phrase_status(
    phrase_id: str,
    body: PhraseStatusUpdate,
    caller: CallerIdentity = Depends(require_authenticated_caller),
    phrases: PhraseRepository = Depends(get_phrase_repository),
) -> PhraseRecord:
    """Mark a phrase as learning or learned (sets ``learnedAt`` when learned)."""
    updated = await phrases.update_status(phrase_id, caller.key, body.status)
    if updated is None:
        raise _not_found()
    return updated


@router.post("/phrases/{phrase_id}/favorite", response_model=PhraseRecord)
async def toggle_phrase_favorite(
    phrase_id: str,
    caller: CallerIdentity = Depends(require_authenticated_caller),
    phrases: PhraseRepository = Depends(get_phrase_repository),
) -> PhraseRecord:
    updated = await phrases.toggle_favorite(phrase_id, caller.key)
    if updated is None:
        raise _not_found()
    return updated
