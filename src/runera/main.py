"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from runera.auth.router import router as auth_router
from runera.config import get_settings
from runera.database import close_db, init_db
from runera.events.router import router as events_router
from runera.health.router import router as health_router
from runera.middleware import setup_middleware
from runera.redis_client import close_redis, init_redis
from runera.runs.coordinator import get_coordinator
from runera.runs.router import router as runs_router
from runera.users.router import router as users_router

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(settings.redis_url)

    coordinator = get_coordinator()
    logger.info(
        "startup",
        environment=settings.environment,
        validator_version=settings.validator_version,
        attestation_enabled=coordinator.attestation.enabled,
    )

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="RUNERA API",
        description="Run verification, progression and on-chain profile attestation",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(auth_router)
    app.include_router(runs_router)
    app.include_router(users_router)
    app.include_router(events_router)

    return app


app = create_app()
