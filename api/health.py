"""
Health checks for the Bosun API.

Reports the state of the navigation data, the route worker and the
classification cache, rolled up into healthy / degraded / unhealthy.
"""
import logging
from typing import Dict, Any, Optional
from datetime import datetime, timezone
from enum import Enum
from dataclasses import dataclass

from api.state import ApplicationState
from bosun import __version__

logger = logging.getLogger(__name__)

# Above this fill ratio the cache is evicting constantly
CACHE_PRESSURE_RATIO = 0.95


class HealthStatus(Enum):
    """Health check status."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


@dataclass
class ComponentHealth:
    """Health status of a single component."""
    name: str
    status: HealthStatus
    message: Optional[str] = None
    details: Optional[Dict[str, Any]] = None


def check_navigation_data(state: ApplicationState) -> ComponentHealth:
    """
    Check that water polygon data is loaded.

    Without it every point classifies as land and no route can succeed.
    """
    store = state.engine.store
    if state.data_loading:
        return ComponentHealth(
            name="navigation_data",
            status=HealthStatus.DEGRADED,
            message="Loading",
        )
    if not store.loaded or not store.has_data:
        return ComponentHealth(
            name="navigation_data",
            status=HealthStatus.UNHEALTHY,
            message="No water polygon data loaded",
        )
    return ComponentHealth(
        name="navigation_data",
        status=HealthStatus.HEALTHY,
        message="Spatial index" if store.uses_spatial_index else "In memory",
        details=store.summary(),
    )


def check_route_worker(state: ApplicationState) -> ComponentHealth:
    worker = state.worker
    if worker.is_ready():
        return ComponentHealth(
            name="route_worker",
            status=HealthStatus.HEALTHY,
            details={"mode": worker.mode, "workers": worker.max_workers},
        )
    return ComponentHealth(
        name="route_worker",
        status=HealthStatus.DEGRADED,
        message="Not ready; routes degrade to direct lines",
        details={"mode": worker.mode},
    )


def check_classification_cache(state: ApplicationState) -> ComponentHealth:
    stats = state.engine.cache_stats()
    fill = stats["size"] / stats["max_size"] if stats["max_size"] else 0.0
    status = HealthStatus.DEGRADED if fill >= CACHE_PRESSURE_RATIO and stats["evictions"] else HealthStatus.HEALTHY
    return ComponentHealth(
        name="classification_cache",
        status=status,
        message=f"{fill:.0%} full",
        details=stats,
    )


def perform_full_health_check(state: ApplicationState) -> Dict[str, Any]:
    """
    Perform health check of all components.

    Returns:
        Dict with overall status and component details
    """
    start = datetime.now(timezone.utc)

    components = [
        check_navigation_data(state),
        check_route_worker(state),
        check_classification_cache(state),
    ]

    unhealthy_count = sum(1 for c in components if c.status == HealthStatus.UNHEALTHY)
    degraded_count = sum(1 for c in components if c.status == HealthStatus.DEGRADED)

    if unhealthy_count > 0:
        overall_status = HealthStatus.UNHEALTHY
    elif degraded_count > 0:
        overall_status = HealthStatus.DEGRADED
    else:
        overall_status = HealthStatus.HEALTHY

    total_time_ms = (datetime.now(timezone.utc) - start).total_seconds() * 1000

    return {
        "status": overall_status.value,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": __version__,
        "uptime_seconds": round(state.uptime_seconds, 2),
        "check_duration_ms": round(total_time_ms, 2),
        "components": {
            c.name: {
                "status": c.status.value,
                "message": c.message,
                **({"details": c.details} if c.details else {}),
            }
            for c in components
        },
    }
