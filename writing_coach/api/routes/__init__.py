from __future__ import annotations

from writing_coach.api.routes.admin import router as admin_router
from writing_coach.api.routes.coach import router as coach_router
from writing_coach.api.routes.health import router as health_router
from writing_coach.api.routes.phrases import router as phrases_router
from writing_coach.api.routes.sessions import router as sessions_router

__all__ = ["admin_router", "coach_router", "health_router", "phrases_router", "sessions_router"]
