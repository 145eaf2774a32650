"""
Health check endpoints for monitoring and orchestration (K8s, Docker, etc.)

- /health, /health/live: liveness (always 200 while the process runs)
- /health/db: database connectivity
- /health/ready: database plus payment gateway circuit breaker
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db_session
from app.config import Settings, get_settings
from app.infrastructure.circuit_breaker import payment_breaker

logger = logging.getLogger(__name__)

router = APIRouter()

SERVICE_NAME = "car-rental-bookings"


async def _database_healthy(session: AsyncSession) -> bool:
    try:
        result = await session.execute(text("SELECT 1"))
        result.scalar()
    except (SQLAlchemyError, OSError) as exc:
        logger.error("Database health check failed", exc_info=exc)
        return False
    return True


@router.get("/health")
@router.get("/health/live")
async def health_check():
    """Liveness probe: 200 mientras el proceso responde."""
    return {"status": "ok", "service": SERVICE_NAME}


@router.get("/health/db")
async def health_check_db(session: AsyncSession = Depends(get_db_session)):
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
    settings: Settings = Depends(get_settings),
):
    """
    Readiness probe.

    La base es obligatoria; un breaker de pagos abierto degrada el servicio
    (las reservas siguen funcionando) pero no lo saca de rotación.
    """
    checks = {
        "database": "healthy" if await _database_healthy(session) else "unhealthy",
        "payment_gateway": payment_breaker.current_state,
        "storage": "in_memory" if settings.use_in_memory else "sql",
    }
    if checks["database"] != "healthy":
        logger.error("Readiness check: Database unhealthy")
        return JSONResponse(status_code=503, content={"status": "not_ready", "checks": checks})
    return {"status": "ready", "checks": checks}
