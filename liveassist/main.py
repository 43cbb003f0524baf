"""FastAPI application entry point.

LiveAssist - session engine for a multimodal voice/text assistant.

Run with:
    uvicorn liveassist.main:app --port 8000
or python scripts/serve_api.py.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from liveassist import __version__
from liveassist.api.routes import health, interactions, metrics
from liveassist.config import get_settings
from liveassist.db.session import close_db, init_db
from liveassist.logging_config import setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler.

    Startup:
    - Initialize logging
    - Initialize database

    Shutdown:
    - Close database connections
    """
    settings = get_settings()

    setup_logging(
        level=settings.log_level,
        enable_file=settings.is_production,
    )

    # Only auto-create tables in development
    # Production should use: alembic upgrade head
    if not settings.is_production:
        await init_db()

    yield

    await close_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="LiveAssist API",
        description="Interaction log and health endpoints for the LiveAssist session engine",
        version=__version__,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.debug else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router, tags=["Health"])

    # Interaction log fallback and history
    app.include_router(interactions.router, prefix="/api", tags=["Interactions"])

    # Metrics endpoint for Prometheus scraping
    app.include_router(metrics.router, tags=["Observability"])

    return app


# Application instance
app = create_app()
