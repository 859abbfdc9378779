"""Health check endpoints.

Provides endpoints for:
- Basic health checks with database connectivity
- Readiness probes (database and blob root)
- Liveness probes
"""

import os
import time
from typing import Any, Dict

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from pds.core.logging import get_logger
from pds.services.container import ServiceContainer
from .dependencies import get_container

logger = get_logger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check(
    container: ServiceContainer = Depends(get_container),
) -> Dict[str, Any]:
    """
    Health check endpoint with database connectivity verification.

    Returns 200 if healthy, 503 if database is unavailable.
    """
    settings = container.settings
    db_available = await container.db.test_connection(timeout=5.0)

    if not db_available:
        logger.warning("Health check failed: database unavailable")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "unhealthy",
                "timestamp": time.time(),
                "version": settings.VERSION,
                "database": "unavailable",
            },
        )

    return {
        "status": "healthy",
        "timestamp": time.time(),
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT,
        "database": "connected",
    }


@router.get("/ready")
async def readiness_check(
    container: ServiceContainer = Depends(get_container),
) -> Dict[str, Any]:
    """Readiness probe: database reachable and blob root writable."""
    if not await container.db.test_connection(timeout=5.0):
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "ready": False,
                "reason": "Database not ready",
                "timestamp": time.time(),
            },
        )

    blob_root = container.blob_store.root
    if blob_root.exists() and not os.access(blob_root, os.W_OK):
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "ready": False,
                "reason": "Document store not writable",
                "timestamp": time.time(),
            },
        )

    return {"ready": True, "timestamp": time.time()}


@router.get("/live")
async def liveness_check() -> Dict[str, Any]:
    """Liveness probe endpoint."""
    return {"alive": True, "timestamp": time.time()}
