"""Health & Readiness Probes: liveness and readiness endpoints for container orchestration.

Invariants:
    - GET /api/v1/health/ always returns 200 if process is up (liveness)
    - GET /api/v1/health/ready returns 503 if the database is unreachable or
      the dispatcher is not wired yet (readiness)
"""

import logging

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from usecase_core.infrastructure import database

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness probe. Returns 200 if the process is up."""
    return {"status": "healthy", "service": "usecase-core-api"}


@router.get("/ready")
async def readiness_check(request: Request):
    """Readiness probe: database connectivity and dispatcher wiring."""
    manager = database.db_manager
    db_ok = await manager.health_check() if manager else False
    dispatcher_ok = getattr(request.app.state, "dispatcher", None) is not None
    if not (db_ok and dispatcher_ok):
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "checks": {
                    "database": "healthy" if db_ok else "unavailable",
                    "dispatcher": "ready" if dispatcher_ok else "not_initialized",
                },
            },
        )
    return {
        "status": "ready",
        "checks": {"database": "healthy", "dispatcher": "ready"},
    }
