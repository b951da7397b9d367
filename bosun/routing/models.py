"""
Result types shared by the grid search, validator and route engine.

``RouteResult`` lives here (rather than in pathfinder.py) so that the
validator, the pathfinder and the worker can all import it without
circular dependencies.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from bosun.data.geometry import GeoPoint
from bosun.routing.geodesy import distance_nm


class FailureReason(str, Enum):
    """Why a route request did not produce a validated water-only path."""
    NO_NAVIGATION_DATA = "no_navigation_data"
    SNAP_FAILED = "snap_failed"
    SEARCH_EXHAUSTED = "search_exhausted"
    VALIDATION_FAILED = "validation_failed"
    WORKER_UNAVAILABLE = "worker_unavailable"


@dataclass
class SearchResult:
    """Outcome of one grid search attempt at a single resolution."""
    success: bool
    waypoints: List[GeoPoint]
    resolution_deg: float
    iterations: int = 0
    failure_reason: Optional[FailureReason] = None


@dataclass
class RouteResult:
    """Water-only route between two points."""
    success: bool
    waypoints: List[GeoPoint]
    distance_nm: float
    failure_reason: Optional[FailureReason] = None
    worker_unavailable: bool = False

    # Metadata
    resolution_deg: Optional[float] = None
    iterations: int = 0
    computation_time_ms: float = 0.0
    attempts: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def direct(
        cls,
        start: GeoPoint,
        end: GeoPoint,
        success: bool = True,
        failure_reason: Optional[FailureReason] = None,
        **kwargs,
    ) -> "RouteResult":
        """Two-point route along the straight line."""
        return cls(
            success=success,
            waypoints=[start, end],
            distance_nm=distance_nm(start, end),
            failure_reason=failure_reason,
            **kwargs,
        )

    @property
    def waypoint_count(self) -> int:
        return len(self.waypoints)

    @property
    def crosses_land(self) -> bool:
        """True when the direct line was not usable as the route."""
        return not self.success or len(self.waypoints) > 2

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "success": self.success,
            "waypoints": [wp.as_dict() for wp in self.waypoints],
            "distanceNm": self.distance_nm,
            "waypointCount": self.waypoint_count,
            "crossesLand": self.crosses_land,
        }
        if self.failure_reason is not None:
            data["failureReason"] = self.failure_reason.value
        if self.worker_unavailable:
            data["workerUnavailable"] = True
        if self.resolution_deg is not None:
            data["resolutionDeg"] = self.resolution_deg
        data["computationTimeMs"] = round(self.computation_time_ms, 2)
        return data
