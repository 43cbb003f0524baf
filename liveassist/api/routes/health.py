"""Health check endpoints.

Provides:
- Basic health check (GET /health)
- Detailed health check with dependency status (GET /health/detailed)
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import text

from liveassist import __version__
from liveassist.config import Settings, get_settings
from liveassist.db.session import get_session

router = APIRouter()


class HealthResponse(BaseModel):
    status: str


class DetailedHealthResponse(BaseModel):
    status: str
    checks: dict[str, str]
    version: str


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    return HealthResponse(status="healthy")


@router.get("/health/detailed", response_model=DetailedHealthResponse)
async def detailed_health_check(
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> DetailedHealthResponse:
    """Detailed health check including dependency status.

    Checks:
    - Database connectivity
    - Gemini API key and interaction log fallback configuration
    """
    checks = {}

    try:
        await session.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = f"error: {type(e).__name__}"

    # Configuration only, no calls to external APIs
    checks["gemini"] = "configured" if settings.google_api_key.get_secret_value() else "missing"
    checks["interaction_log_fallback"] = (
        "configured" if settings.interaction_log_fallback_enabled else "disabled"
    )

    status = "healthy" if checks["database"] == "ok" else "degraded"

    return DetailedHealthResponse(status=status, checks=checks, version=__version__)
