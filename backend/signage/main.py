import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncEngine

from signage.config import configure_logging, settings
from signage.core.middleware import setup_middleware
from signage.db.engine import create_engine, create_session_factory
from signage.realtime.hub import BroadcastHub

logger = logging.getLogger(__name__)


async def ensure_tables(engine: AsyncEngine) -> None:
    """Create DB tables if they don't exist yet."""
    from signage.db.base import Base
    import signage.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def _run_startup_migration(app: FastAPI) -> None:
    """Upgrade a legacy stored schedule; serving continues if it fails."""
    from signage.core.exceptions import MigrationError
    from signage.services.schedule_migration import migrate_schedule

    async with app.state.session_factory() as db:
        try:
            result = await migrate_schedule(db)
            logger.info("Startup schedule migration: %s (v%d)", result.status.value, result.version)
        except MigrationError as e:
            logger.error("Startup schedule migration failed: %s", e, exc_info=True)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    await ensure_tables(app.state.engine)

    if settings.MIGRATE_SCHEDULE_ON_STARTUP:
        await _run_startup_migration(app)

    yield

    await app.state.engine.dispose()
    logger.info("Database engine disposed")


def create_app(database_url: str | None = None) -> FastAPI:
    configure_logging()

    app = FastAPI(
        title="Sauna Signage API",
        version="0.1.0",
        description="Schedule, settings and device management for sauna signage displays",
        debug=settings.APP_DEBUG,
        lifespan=lifespan,
    )

    # Per-app services, handed to handlers through app.state
    app.state.engine = create_engine(database_url or settings.DATABASE_URL, echo=settings.APP_DEBUG)
    app.state.session_factory = create_session_factory(app.state.engine)
    app.state.hub = BroadcastHub()

    setup_middleware(app)

    @app.get("/health")
    async def health_check():
        return {"status": "ok", "realtime_clients": len(app.state.hub.clients)}

    # Register API routers
    from signage.api.v1 import router as api_v1_router
    app.include_router(api_v1_router, prefix="/api/v1")

    return app


app = create_app()
