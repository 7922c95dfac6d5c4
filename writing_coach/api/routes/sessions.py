from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from writing_coach.api.deps import get_session_repository
from writing_coach.core.errors import NotFoundAppError
from writing_coach.core.identity import CallerIdentity, require_authenticated_caller
from writing_coach.schemas.records import SessionRecord
from writing_coach.services.repositories import MAX_SESSIONS_PAGE, SessionRepository

router = APIRouter(tags=["Sessions"])


@router.get("/sessions", response_model=list[SessionRecord])
async def list_sessions(
    limit: int = Query(20, ge=1, le=MAX_SESSIONS_PAGE),
    caller: CallerIdentity = Depends(require_authenticated_caller),
    sessions: SessionRepository = Depends(get_session_repository),
) -> list[SessionRecord]:
    """List the caller's coaching sessions, newest first."""
    return await sessions.list_by_user(caller.key, limit=limit)


@router.get("/sessions/{session_id}", response_model=SessionRecord)
async def get_session(
    session_id: str,
    caller: CallerIdentity = Depends(require_authenticated_caller),
    sessions: SessionRepository = Depends(get_session_repository),
) -> SessionRecord:
    session = await sessions.get(session_id, caller.key)
    if session is None:
        raise NotFoundAppError(code="session_not_found", message="Session not found")
    return session
