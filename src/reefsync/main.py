"""FastAPI application factory."""

import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from reefsync.config import get_settings
from reefsync.database import close_db, get_session_factory, init_db
from reefsync.db.store import RelationalStore
from reefsync.decorations.router import router as decorations_router
from reefsync.fish.router import router as fish_router
from reefsync.health.router import router as health_router
from reefsync.ledger import get_ledger_client, reset_ledger_client
from reefsync.middleware import setup_middleware
from reefsync.players.router import router as players_router
from reefsync.redis_client import close_redis, init_redis
from reefsync.tanks.router import router as tanks_router

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(settings.redis_url)

    # Fail fast on a misconfigured ledger mode.
    ledger = get_ledger_client(RelationalStore(get_session_factory()))
    logger.info(
        "app_started",
        version=settings.app_version,
        environment=settings.environment,
        ledger=type(ledger).__name__,
    )

    yield

    reset_ledger_client()
    await close_db()
    await close_redis()
    logger.info("app_stopped", uptime=round(time.monotonic() - app.state.started_at, 3))


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Reefsync API",
        description="Aquarium game backend keeping the relational store in step with the on-chain ledger",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )
    app.state.started_at = time.monotonic()

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(players_router)
    app.include_router(fish_router)
    app.include_router(tanks_router)
    app.include_router(decorations_router)

    return app


app = create_app()
