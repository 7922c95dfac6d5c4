from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query

from writing_coach.api.deps import get_services
from writing_coach.core.identity import CallerIdentity, hash_caller_key, require_admin_caller
from writing_coach.services.container import ServiceContainer

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Admin"])


@router.delete("/admin/clear")
async def clear_user_data(
    user_key: str = Query(..., alias="userKey", min_length=1),
    admin: CallerIdentity = Depends(require_admin_caller),
    services: ServiceContainer = Depends(get_services),
) -> dict:
    """Delete every session and phrase stored for ``userKey``.

    Returns:
        dict: ``{"userKey", "deletedSessions", "deletedPhrases"}``.
    """
    deleted_sessions = await services.sessions.delete_all_by_user(user_key)
    deleted_phrases = await services.phrases.delete_all_by_user(user_key)

    logger.warning(
        "admin.cleared_user",
        extra={
            "admin_hash": admin.key_hash,
            "target_hash": hash_caller_key(user_key),
            "deleted_sessions": deleted_sessions,
            "deleted_phrases": deleted_phrases,
        },
    )
    return {
        "userKey": user_key,
        "deletedSessions": deleted_sessions,
        "deletedPhrases": deleted_phrases,
    }
