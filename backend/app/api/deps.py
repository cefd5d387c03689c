"""Shared FastAPI dependencies."""

from collections.abc import Generator
from datetime import timedelta

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from backend.app.adapters.openrouter import OpenRouterClient
from backend.app.config import Settings
from backend.app.db.session import get_session_factory
from backend.app.db.store import SqlStore
from backend.app.generation.service import PlanGenerationService


def get_db_session() -> Generator[Session, None, None]:
    """Dependency to get a database session."""
    factory = get_session_factory()
    session = factory()
    try:
        yield session
    finally:
        session.close()


def get_app_settings(request: Request) -> Settings:
    """Settings the application was created with."""
    return request.app.state.settings


def get_provider_client(request: Request) -> OpenRouterClient:
    """Provider client owned by the application."""
    return request.app.state.provider_client


def get_generation_service(
    session: Session = Depends(get_db_session),
    provider: OpenRouterClient = Depends(get_provider_client),
    settings: Settings = Depends(get_app_settings),
) -> PlanGenerationService:
    """Request-scoped generation service over the request's session."""
    return PlanGenerationService(
        SqlStore(session),
        provider,
        limit=settings.generation_limit,
        window=timedelta(days=settings.generation_window_days),
    )
