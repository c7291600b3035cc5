"""Health check endpoints.

Provides endpoints for monitoring service health and readiness.
"""

import structlog
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError

from obras.api.dependencies import SessionDep
from obras.infrastructure.config import settings
from obras.infrastructure.database import ping

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
        service="obras-api",
        version=settings.api_version,
    )


@router.get("/ready")
async def readiness_check(session: SessionDep) -> JSONResponse:
    """Check if service is ready to accept requests.

    Returns:
        200 when the database answers, 503 otherwise.
    """
    try:
        await ping(session)
    except SQLAlchemyError as e:
        logger.warning("Database not reachable", error=str(e))
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unavailable", "database": "unreachable"},
        )
    return JSONResponse(content={"status": "ready", "database": "ok"})
