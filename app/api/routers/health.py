"""
Health check endpoints for monitoring and orchestration (K8s, Docker, etc.)

- /health and /health/live: liveness, always 200 while the process runs
- /health/db: storage connectivity
- /health/ready: readiness, 503 until storage answers
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.api.deps import Backend, get_backend

logger = logging.getLogger(__name__)

router = APIRouter()

SERVICE_NAME = "booking-settlement-api"


@router.get("/health")
async def health_check():
    """Basic liveness check."""
    return {"status": "ok", "service": SERVICE_NAME}


@router.get("/health/live")
async def health_check_live():
    """Alias for /health for orchestrators that prefer the /live name."""
    return {"status": "ok", "service": SERVICE_NAME}


@router.get("/health/db")
async def health_check_db(backend: Backend = Depends(get_backend)):
    """
    Storage connectivity check.

    In-memory mode always reports healthy. Returns 503 when the database is down.
    """
    try:
        await backend.ping()
    except Exception as e:
        logger.error("Database health check failed", exc_info=e)
        return JSONResponse(
            status_code=503,
            content={
                "status": "unhealthy",
                "component": "database",
                "error": "Database connection failed",
            },
        )
    return {
        "status": "healthy",
        "component": "database",
        "storage": "memory" if backend.memory is not None else "sql",
    }


@router.get("/health/ready")
async def health_check_ready(backend: Backend = Depends(get_backend)):
    """Readiness check: 503 until every dependency answers."""
    health_status = {"status": "ready", "checks": {}}

    try:
        await backend.ping()
        health_status["checks"]["database"] = "healthy"
    except Exception as e:
        logger.error("Readiness check: Database unhealthy", exc_info=e)
        health_status["status"] = "not_ready"
        health_status["checks"]["database"] = "unhealthy"
        return JSONResponse(status_code=503, content=health_status)

    return health_status
