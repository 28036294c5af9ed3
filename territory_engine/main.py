"""Territory assignment engine — FastAPI application factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from territory_engine.adapters.persistence.database import engine
from territory_engine.config import settings
from territory_engine.infrastructure.api.routes_analytics import router as analytics_router
from territory_engine.infrastructure.api.routes_assignments import router as assignments_router
from territory_engine.infrastructure.api.routes_health import router as health_router
from territory_engine.infrastructure.api.routes_rules import router as rules_router
from territory_engine.infrastructure.api.routes_territories import router as territories_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    try:
        async with engine.begin():
            pass  # Connection pool warmed up
        logger.info("Database connection established")
    except Exception as e:
        logger.warning("Database not available on startup: %s", e)
    yield
    await engine.dispose()


def create_app() -> FastAPI:
    logging.basicConfig(
        level="DEBUG" if settings.debug else settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s | %(message)s",
    )

    app = FastAPI(
        title="Territory Assignment Engine",
        description="Rule-based client assignment with capacity-aware load balancing",
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register routers
    app.include_router(health_router, prefix="/api")
    app.include_router(territories_router, prefix="/api")
    app.include_router(rules_router, prefix="/api")
    app.include_router(assignments_router, prefix="/api")
    app.include_router(analytics_router, prefix="/api")

    return app


app = create_app()
