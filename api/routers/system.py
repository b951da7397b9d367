"""
System API router.

Handles the root endpoint and health checks (liveness and full
component health).
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api.health import HealthStatus, perform_full_health_check
from api.middleware import get_request_id
from api.state import ApplicationState, get_app_state
from bosun import __version__

router = APIRouter(tags=["System"])

logger = logging.getLogger(__name__)


@router.get("/")
async def root():
    """
    API root endpoint.

    Returns basic API information and available endpoint categories.
    """
    return {
        "name": "Bosun Navigation API",
        "version": __version__,
        "status": "operational",
        "docs": "/api/docs",
        "endpoints": {
            "health": "/api/health",
            "navigation": "/api/navigation/...",
        }
    }


@router.get("/api/health")
async def health_check(state: ApplicationState = Depends(get_app_state)):
    """
    Component health check for load balancers and orchestrators.

    Checks:
    - Navigation data (water polygons loaded)
    - Route worker
    - Classification cache

    Returns 503 when unhealthy so probes take the instance out of rotation.
    """
    result = perform_full_health_check(state)
    result["request_id"] = get_request_id()
    status_code = 503 if result["status"] == HealthStatus.UNHEALTHY.value else 200
    return JSONResponse(status_code=status_code, content=result)


@router.get("/api/health/live")
async def liveness_check():
    """Liveness probe: the process is up and serving."""
    return {
        "status": "alive",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
