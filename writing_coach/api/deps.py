"""FastAPI dependencies resolving services from ``app.state``."""

from __future__ import annotations

from fastapi import Request

from writing_coach.services.coach_pipeline import CoachPipeline
from writing_coach.services.container import ServiceContainer
from writing_coach.services.repositories import PhraseRepository, SessionRepository


def get_services(request: Request) -> ServiceContainer:
    return request.app.state.services


def get_pipeline(request: Request) -> CoachPipeline:
    return get_services(request).pipeline


def get_session_repository(request: Request) -> SessionRepository:
    return get_services(request).sessions


def get_phrase_repository(request: Request) -> PhraseRepository:
    return get_services(request).phrases
