"""
Health Check Endpoints

Provides:
1. /health - Liveness plus database check
2. /health/live - Simple liveness probe
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from temple_tax import __version__
from temple_tax.database.connection import check_database_connection

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = datetime.now(timezone.utc)


@router.get("/health")
def health_check() -> JSONResponse:
    """
    Full health check.

    Returns 503 when the database cannot be reached.
    """
    database_ok = check_database_connection()
    body: Dict[str, Any] = {
        "status": "healthy" if database_ok else "unhealthy",
        "version": __version__,
        "uptime_seconds": int((datetime.now(timezone.utc) - _start_time).total_seconds()),
        "checks": {"database": "ok" if database_ok else "unavailable"},
    }
    if not database_ok:
        logger.warning("Health check failed: database unavailable")
    return JSONResponse(
        status_code=status.HTTP_200_OK if database_ok else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=body,
    )


@router.get("/health/live")
def liveness() -> Dict[str, str]:
    """Liveness probe: the process is up."""
    return {"status": "alive"}
