"""
Bosun API Pydantic schemas.

Re-exports all schema classes:
    from api.schemas import Position, RouteRequest, ...
"""

# Common
from .common import CamelModel, ErrorResponse, Position  # noqa: F401

# Navigation
from .navigation import (  # noqa: F401
    RouteRequest,
    RouteResponse,
    CheckRouteResponse,
    WaterTypeResponse,
    GridPoint,
    GridBounds,
    WaterGridResponse,
    DebugInfoResponse,
)
