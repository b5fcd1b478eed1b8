"""
Health check endpoints for monitoring and orchestration (K8s, Docker, etc.)

- /health, /health/live: liveness (always 200 while the process runs)
- /health/db: database connectivity
- /health/ready: readiness (gateway configuration and database)
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_container
from app.api.deps import get_db_session
from app.domain.errors import ConfigurationError

logger = logging.getLogger(__name__)

router = APIRouter()

SERVICE_NAME = "bookings-payments-api"


async def _database_healthy(session: AsyncSession) -> bool:
    try:
        result = await session.execute(text("SELECT 1"))
        result.scalar()
        return True
    except Exception as e:
        logger.error("Database health check failed", exc_info=e)
        return False


@router.get("/health")
async def health_check():
    """Basic liveness probe."""
    return {"status": "ok", "service": SERVICE_NAME}


@router.get("/health/live")
async def health_check_live():
    return {"status": "ok", "service": SERVICE_NAME}


@router.get("/health/db")
async def health_check_db(session: AsyncSession = Depends(get_db_session)):
    """Returns 503 when the database does not answer `SELECT 1`."""
    if await _database_healthy(session):
        return {"status": "healthy", "component": "database"}
    return JSONResponse(
        status_code=503,
        content={
            "status": "unhealthy",
            "component": "database",
            "error": "Database connection failed",
        },
    )


@router.get("/health/ready")
async def health_check_ready(
    session: AsyncSession = Depends(get_db_session),
    container: dict = Depends(get_container),
):
    """
    Readiness probe.

    Checks gateway configuration and, outside in-memory mode, the database.
    Returns 503 if any check fails.
    """
    settings = container["settings"]
    health_status = {
        "status": "ready",
        "checks": {"gateways": ",".join(container["components"]["gateway_selector"].names())},
    }

    try:
        settings.validate_gateways()
        health_status["checks"]["configuration"] = "healthy"
    except ConfigurationError as exc:
        logger.error("Readiness check: configuration incomplete", extra={"missing": exc.missing})
        health_status["checks"]["configuration"] = "unhealthy"
        health_status["status"] = "not_ready"

    if settings.use_in_memory:
        health_status["checks"]["database"] = "in_memory"
    elif await _database_healthy(session):
        health_status["checks"]["database"] = "healthy"
    else:
        health_status["checks"]["database"] = "unhealthy"
        health_status["status"] = "not_ready"

    if health_status["status"] != "ready":
        return JSONResponse(status_code=503, content=health_status)
    return health_status
