"""
Navigation API router.

Water-only route calculation, direct-line land checks, point
classification and debug overlays backed by the route engine.
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic.alias_generators import to_camel

from api.rate_limit import get_rate_limit_status, get_rate_limit_string, limiter
from api.schemas.common import ErrorResponse
from api.schemas.navigation import (
    CheckRouteResponse,
    DebugInfoResponse,
    RouteRequest,
    RouteResponse,
    WaterGridResponse,
    WaterTypeResponse,
)
from api.state import ApplicationState, get_app_state
from bosun.routing.geodesy import InvalidCoordinateError
from bosun.routing.water_classifier import DEFAULT_GRID_SIZE_DEG

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/navigation",
    tags=["Navigation"],
    responses={
        400: {"model": ErrorResponse, "description": "Invalid coordinates"},
        503: {"model": ErrorResponse, "description": "Navigation data not loaded"},
    },
)

NOT_INITIALIZED = "Water detection service not initialized"

# Response cap for collectAll land samples
MAX_LAND_POINTS = 2500


def _require_data(state: ApplicationState) -> None:
    if not state.engine.ready:
        raise HTTPException(status_code=503, detail=NOT_INITIALIZED)


@router.post("/route", response_model=RouteResponse, response_model_exclude_none=True)
@limiter.limit(get_rate_limit_string())
async def calculate_route(
    request: Request,
    body: RouteRequest,
    state: ApplicationState = Depends(get_app_state),
):
    """
    Calculate a water-only route between two points.

    Never blocks on data loading: while the route worker is not ready the
    direct line comes back with ``workerUnavailable`` set.
    """
    try:
        result = await state.worker.find_route(
            body.start_lat, body.start_lon, body.end_lat, body.end_lon
        )
    except InvalidCoordinateError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Route calculation failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to calculate route")

    return RouteResponse.model_validate(result.to_dict())


@router.post("/check-route", response_model=CheckRouteResponse)
async def check_route(
    body: RouteRequest,
    collect_all: bool = Query(False, alias="collectAll", description="Return every land sample (debug)"),
    state: ApplicationState = Depends(get_app_state),
):
    """
    Check whether the direct line between two points crosses land.

    Stops at the first land sample. With ``collectAll`` the whole line is
    sampled for debug overlays; at most MAX_LAND_POINTS are returned.
    """
    _require_data(state)
    try:
        check = await asyncio.to_thread(
            state.engine.check_route,
            body.start_lat, body.start_lon, body.end_lat, body.end_lon,
            collect_all,
        )
    except InvalidCoordinateError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return CheckRouteResponse(
        crosses_land=check.crosses_land,
        land_point_count=len(check.land_points),
        land_points=[p.as_dict() for p in check.land_points[:MAX_LAND_POINTS]],
    )


@router.get("/water-type", response_model=WaterTypeResponse)
async def get_water_type(
    lat: float = Query(..., description="Latitude"),
    lon: float = Query(..., description="Longitude"),
    state: ApplicationState = Depends(get_app_state),
):
    """Classify a single coordinate as ocean, lake or land."""
    _require_data(state)
    try:
        # May read spatial index geometry from disk
        water_type = await asyncio.to_thread(state.engine.classify, lat, lon)
    except InvalidCoordinateError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return WaterTypeResponse(
        lat=lat,
        lon=lon,
        water_type=water_type.value,
        is_water=water_type.navigable,
    )


@router.get("/debug/water-grid", response_model=WaterGridResponse)
async def get_water_grid(
    min_lat: float = Query(..., alias="minLat"),
    max_lat: float = Query(..., alias="maxLat"),
    min_lon: float = Query(..., alias="minLon"),
    max_lon: float = Query(..., alias="maxLon"),
    grid_size: float = Query(DEFAULT_GRID_SIZE_DEG, alias="gridSize"),
    state: ApplicationState = Depends(get_app_state),
):
    """
    Classification grid over a bounding box for the debug overlay.

    Capped at 2500 points; the spacing is coarsened to fit.
    """
    _require_data(state)
    try:
        grid = await asyncio.to_thread(
            state.engine.water_grid, min_lat, max_lat, min_lon, max_lon, grid_size
        )
    except ValueError as e:
        # InvalidCoordinateError is a ValueError too
        raise HTTPException(status_code=400, detail=str(e))

    return WaterGridResponse(
        grid=grid.points,
        count=grid.count,
        bounds={"min_lat": min_lat, "max_lat": max_lat, "min_lon": min_lon, "max_lon": max_lon},
        grid_size=grid.requested_grid_size_deg,
        effective_grid_size=grid.grid_size_deg,
    )


@router.get("/debug/info", response_model=DebugInfoResponse)
async def get_debug_info(state: ApplicationState = Depends(get_app_state)):
    """Water detection status and classification cache statistics."""
    status = state.engine.status()
    return DebugInfoResponse(
        initialized=status["loaded"],
        has_data=status["has_data"],
        using_spatial_index=status["uses_spatial_index"],
        polygons_available=status["has_data"] and not status["uses_spatial_index"],
        cache_stats={to_camel(k): v for k, v in status["cache"].items()},
        data=status["data"],
        route_worker_ready=state.worker.is_ready(),
        rate_limit={to_camel(k): v for k, v in get_rate_limit_status().items()},
    )
