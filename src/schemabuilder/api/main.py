"""Main FastAPI application."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from schemabuilder.api.container import ServiceContainer, build_container
from schemabuilder.api.errors import register_exception_handlers
from schemabuilder.api.middleware import RequestContextMiddleware, TimeoutMiddleware
from schemabuilder.api.routes import ai, auth, health, schemas, users
from schemabuilder.core.config import Settings, get_settings
from schemabuilder.core.logging import get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    container: ServiceContainer = app.state.container
    logger.info("Starting Schema Builder", version=container.settings.app.version)

    try:
        await container.database.connect()
        logger.info("Application startup completed")
        yield
    finally:
        logger.info("Shutting down Schema Builder")
        await container.notifications.drain()
        await container.database.close()
        logger.info("Application shutdown completed")


def create_app(
    settings: Optional[Settings] = None,
    container: Optional[ServiceContainer] = None,
    configure_logging: bool = True,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()
    if configure_logging:
        setup_logging(settings)
    container = container or build_container(settings)

    app = FastAPI(
        title=settings.app.name,
        version=settings.app.version,
        description="Visual database schema designer with accounts and an AI design assistant",
        debug=settings.app.debug,
        lifespan=lifespan,
    )
    app.state.container = container

    register_exception_handlers(app)

    app.add_middleware(TimeoutMiddleware, timeout_seconds=settings.security.request_timeout_seconds)
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.is_development() else settings.security.cors_origin_list(),
        allow_credentials=not settings.is_development(),
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestContextMiddleware)

    app.include_router(health.router, prefix="/api/v1", tags=["health"])
    app.include_router(auth.router, prefix="/api/v1/auth", tags=["auth"])
    app.include_router(users.router, prefix="/api/v1/user", tags=["user"])
    app.include_router(schemas.router, prefix="/api/v1/schemas", tags=["schemas"])
    app.include_router(ai.router, prefix="/api/v1/ai", tags=["ai"])

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "message": "Welcome to Schema Builder",
            "version": settings.app.version,
            "docs": "/docs",
            "health": "/api/v1/health",
        }

    return app
