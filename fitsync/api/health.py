"""Health check endpoints.

Provides endpoints for monitoring service health and readiness.
"""

import structlog
from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError

from fitsync.infrastructure.config import settings
from fitsync.infrastructure.database import check_connection

logger = structlog.get_logger()

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str
    service: str
    version: str


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Check service health.

    Returns:
        Health status with service name and version.
    """
    return HealthResponse(
        status="healthy",
        service="fitsync",
        version=settings.api_version,
    )


@router.get("/ready")
async def readiness_check() -> JSONResponse:
    """Check if service is ready to accept requests.

    With the SQL backend the database must answer a trivial query.

    Returns:
        Readiness status, 503 when the database is unreachable.
    """
    if settings.store_backend == "sql":
        try:
            await check_connection()
        except (SQLAlchemyError, OSError) as e:
            logger.warning("Readiness check failed", error=str(e))
            return JSONResponse(
                status_code=503,
                content={"status": "unavailable", "database": "unreachable"},
            )
    return JSONResponse(content={"status": "ready", "store": settings.store_backend})
