"""Navigation (water detection / routing) API schemas."""

from typing import Any, Dict, List, Literal, Optional

from pydantic import Field

from .common import CamelModel, Position


class RouteRequest(CamelModel):
    """Start and end of a requested route."""
    start_lat: float = Field(..., strict=True, allow_inf_nan=False)
    start_lon: float = Field(..., strict=True, allow_inf_nan=False)
    end_lat: float = Field(..., strict=True, allow_inf_nan=False)
    end_lon: float = Field(..., strict=True, allow_inf_nan=False)


class RouteResponse(CamelModel):
    """Water-only route. On failure the waypoints are the direct line."""
    success: bool
    waypoints: List[Position]
    distance_nm: float
    waypoint_count: int
    crosses_land: bool
    failure_reason: Optional[str] = None
    worker_unavailable: Optional[bool] = None
    resolution_deg: Optional[float] = None
    computation_time_ms: Optional[float] = None


class CheckRouteResponse(CamelModel):
    crosses_land: bool
    land_point_count: int
    land_points: List[Position] = Field(default_factory=list)


class WaterTypeResponse(CamelModel):
    lat: float
    lon: float
    water_type: Literal["ocean", "lake", "land"]
    is_water: bool


class GridPoint(CamelModel):
    lat: float
    lon: float
    type: Literal["ocean", "lake", "land"]


class GridBounds(CamelModel):
    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float


class WaterGridResponse(CamelModel):
    grid: List[GridPoint]
    count: int
    bounds: GridBounds
    grid_size: float
    effective_grid_size: float


class DebugInfoResponse(CamelModel):
    initialized: bool
    has_data: bool
    using_spatial_index: bool
    polygons_available: bool
    cache_stats: Dict[str, Any]
    data: Dict[str, Any]
    route_worker_ready: bool
    rate_limit: Dict[str, Any] = Field(default_factory=dict)
