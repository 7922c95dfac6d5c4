"""Application factory for the FastAPI app.

Centralizes app construction (metadata, services, middleware, handlers,
routers) so tests can build an app around their own service container.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from writing_coach.api.routes import (
    admin_router,
    coach_router,
    health_router,
    phrases_router,
    sessions_router,
)
from writing_coach.core.config import settings
from writing_coach.core.exception_handlers import setup_exception_handlers
from writing_coach.core.logging import configure_logging
from writing_coach.core.middleware import request_id_middleware
from writing_coach.core.openapi import apply_openapi_customizations
from writing_coach.services.container import ServiceContainer, build_services

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    services: ServiceContainer = app.state.services
    await services.startup()
    logger.info("app.started", extra={"app_env": settings.app_env})
    try:
        yield
    finally:
        await services.shutdown()


def create_app(services: ServiceContainer | None = None) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        services: Pre-built service graph; the default one is wired from
            settings when omitted.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Writing Coach API",
        description=(
            "Coaches learners writing in a foreign language: returns a minimal "
            "fix, an upgraded version, register variants, targeted feedback and "
            "a reusable phrase bank. Requests pass a bot filter, a per-caller "
            "sliding-window rate limit and a tier-based model access gate."
        ),
        version="0.1.0",
        lifespan=lifespan,
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )
    app.state.services = services or build_services(settings)

    # Middleware
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(coach_router, prefix="/v1")
    app.include_router(sessions_router, prefix="/v1")
    app.include_router(phrases_router, prefix="/v1")
    app.include_router(admin_router, prefix="/v1")
    app.include_router(health_router)

    # OpenAPI customizations (security scheme, tags, exemptions)
    apply_openapi_customizations(app)

    return app
