"""FastAPI application factory."""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.app.adapters.openrouter import OpenRouterClient
from backend.app.api.auth import router as auth_router
from backend.app.api.errors import register_exception_handlers
from backend.app.api.health import router as health_router
from backend.app.api.notes import router as notes_router
from backend.app.api.plans import router as plans_router
from backend.app.api.profile import router as profile_router
from backend.app.config import Settings, get_settings
from backend.app.db.base import Base
from backend.app.db.session import get_engine
from backend.app.logging_config import configure_logging
from backend.app.security.middleware import SecurityHeadersMiddleware

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    provider_client: OpenRouterClient | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to use instead of the environment-loaded ones
        provider_client: Provider client to use instead of one built from
            settings (tests pass a client over a mock transport)

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Trip Notes API",
        description="Trip notes and AI-generated travel plans",
        version="0.1.0",
    )
    app.state.settings = settings
    app.state.provider_client = provider_client or OpenRouterClient.from_settings(
        settings
    )

    # Security middleware (before CORS)
    app.add_middleware(SecurityHeadersMiddleware, settings=settings)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.ui_origin],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Location"],
    )

    register_exception_handlers(app)

    # Include routers
    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(profile_router)
    app.include_router(notes_router)
    app.include_router(plans_router)

    @app.on_event("startup")
    async def startup_event():
        """Run startup tasks."""
        logger.info("Application starting up")
        if settings.database_url.startswith("sqlite"):
            # Local development runs without migrations
            Base.metadata.create_all(get_engine())

    @app.on_event("shutdown")
    async def shutdown_event():
        """Release the provider client's connections."""
        await app.state.provider_client.aclose()

    return app


# Create app instance for uvicorn
app = create_app()
