"""
Multi-resolution water-only pathfinder.

1. Fast path: if the straight line is all water, return it
2. Otherwise A* on progressively finer grids (coarse -> fine)
3. Each grid path is validated at full resolution before it is accepted
4. If nothing validates, report failure with the direct line as payload

The iteration cap applies per attempt, not across the whole sequence.
"""

import logging
import time
from typing import List, Optional, Sequence

from bosun.data.geometry import GeoPoint
from bosun.routing.grid_search import GridSearch
from bosun.routing.models import FailureReason, RouteResult
from bosun.routing.path_validator import PathValidator
from bosun.routing.segment_checker import SegmentChecker

logger = logging.getLogger(__name__)

DEFAULT_RESOLUTIONS = [0.001, 0.0005, 0.0002, 0.0001]
DEFAULT_MAX_ITERATIONS = 50_000


class MultiResolutionPathfinder:
    """Finds land-free routes by coarse-to-fine grid search."""

    def __init__(
        self,
        checker: SegmentChecker,
        search: GridSearch,
        validator: PathValidator,
        resolutions: Optional[Sequence[float]] = None,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
    ):
        self.checker = checker
        self.search = search
        self.validator = validator
        self.resolutions: List[float] = sorted(resolutions or DEFAULT_RESOLUTIONS, reverse=True)
        self.max_iterations = max_iterations

    def find_route(
        self,
        start: GeoPoint,
        end: GeoPoint,
        max_iterations: Optional[int] = None,
    ) -> RouteResult:
        """
        Find a water-only route between two points.

        Args:
            start: Departure point
            end: Destination point
            max_iterations: Per-attempt expansion cap (defaults to the
                pathfinder's configured cap)

        Returns:
            RouteResult; on failure the waypoints are the direct line
        """
        t0 = time.time()
        cap = self.max_iterations if max_iterations is None else max_iterations

        if not self.checker.check_segment(start, end).crosses_land:
            result = RouteResult.direct(start, end)
            result.computation_time_ms = (time.time() - t0) * 1000
            logger.debug(f"Direct route clear ({result.distance_nm:.2f} nm)")
            return result

        attempts = []
        total_iterations = 0
        for resolution in self.resolutions:
            found = self.search.search(start, end, resolution, cap)
            total_iterations += found.iterations
            attempt = {
                "resolution_deg": resolution,
                "iterations": found.iterations,
                "found": found.success,
                "validated": False,
                "failure_reason": found.failure_reason.value if found.failure_reason else None,
            }
            attempts.append(attempt)

            if not found.success:
                logger.debug(
                    f"No grid path at {resolution}° "
                    f"({found.failure_reason.value}, {found.iterations} iterations)"
                )
                continue

            validated = self.validator.validate(found.waypoints)
            if not validated.success:
                logger.debug(f"Grid path at {resolution}° failed validation, trying finer grid")
                continue

            attempt["validated"] = True
            validated.resolution_deg = resolution
            validated.iterations = total_iterations
            validated.attempts = attempts
            validated.computation_time_ms = (time.time() - t0) * 1000
            logger.info(
                f"Route found at {resolution}°: {validated.waypoint_count} waypoints, "
                f"{validated.distance_nm:.2f} nm, {validated.computation_time_ms:.0f} ms"
            )
            return validated

        if all(a["failure_reason"] == FailureReason.SNAP_FAILED.value for a in attempts):
            reason = FailureReason.SNAP_FAILED
        else:
            reason = FailureReason.SEARCH_EXHAUSTED

        result = RouteResult.direct(
            start,
            end,
            success=False,
            failure_reason=reason,
            iterations=total_iterations,
            attempts=attempts,
        )
        result.computation_time_ms = (time.time() - t0) * 1000
        logger.warning(
            f"No water route ({start.lat:.5f}, {start.lon:.5f}) -> "
            f"({end.lat:.5f}, {end.lon:.5f}) after {len(attempts)} resolutions: {reason.value}"
        )
        return result
