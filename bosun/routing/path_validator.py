"""
Full-resolution validation and simplification of grid paths.

A path found on a coarse grid can still clip small islands between cell
centres. Every segment is re-checked at segment-checker resolution; a
crossing segment is patched with a local A* at the finest grid, and the
whole validation fails if that patch is impossible.
"""

import logging
from typing import List, Sequence

from bosun.data.geometry import GeoPoint
from bosun.routing.geodesy import path_distance_nm
from bosun.routing.grid_search import GridSearch
from bosun.routing.models import FailureReason, RouteResult
from bosun.routing.segment_checker import SegmentChecker

logger = logging.getLogger(__name__)


class PathValidator:
    """Validates, patches and simplifies candidate paths."""

    def __init__(
        self,
        checker: SegmentChecker,
        search: GridSearch,
        refine_resolution_deg: float = 0.0001,
        refine_max_iterations: int = 10_000,
        simplify_sample_m: float = 15.0,
    ):
        self.checker = checker
        self.search = search
        self.refine_resolution_deg = refine_resolution_deg
        self.refine_max_iterations = refine_max_iterations
        self.simplify_sample_m = simplify_sample_m

    def validate(self, path: Sequence[GeoPoint]) -> RouteResult:
        """
        Re-check each segment, patch crossings, then simplify.

        Returns:
            RouteResult with success=False when a crossing could not be patched
        """
        path = list(path)
        if len(path) < 2:
            return RouteResult(
                success=False,
                waypoints=path,
                distance_nm=0.0,
                failure_reason=FailureReason.VALIDATION_FAILED,
            )

        refined: List[GeoPoint] = [path[0]]
        for curr in path[1:]:
            prev = refined[-1]
            if not self.checker.check_segment(prev, curr).crosses_land:
                refined.append(curr)
                continue

            # Coarse path missed something: route around it locally
            local = self.search.search(
                prev, curr, self.refine_resolution_deg, self.refine_max_iterations
            )
            if local.success and not self.checker.path_crosses_land(local.waypoints):
                refined.extend(local.waypoints[1:])
                continue

            logger.debug(
                f"Segment ({prev.lat:.5f}, {prev.lon:.5f}) -> ({curr.lat:.5f}, {curr.lon:.5f}) "
                f"crosses land and could not be patched"
            )
            return RouteResult(
                success=False,
                waypoints=path,
                distance_nm=0.0,
                failure_reason=FailureReason.VALIDATION_FAILED,
                iterations=local.iterations,
            )

        simplified = self.simplify(refined)
        return RouteResult(
            success=True,
            waypoints=simplified,
            distance_nm=path_distance_nm(simplified),
        )

    def simplify(self, path: List[GeoPoint]) -> List[GeoPoint]:
        """
        Drop waypoints whose neighbours connect over water directly.

        A waypoint is dropped only if the line from the last kept waypoint
        to the next one is water at the simplification spacing and passes
        the segment checker, so every kept segment stays land-free.
        """
        if len(path) <= 2:
            return list(path)

        result = [path[0]]
        for i in range(1, len(path) - 1):
            prev = result[-1]
            nxt = path[i + 1]
            if not self._can_connect(prev, nxt):
                result.append(path[i])
        result.append(path[-1])
        return result

    def _can_connect(self, a: GeoPoint, b: GeoPoint) -> bool:
        return (
            self.checker.is_water_line(a, b, self.simplify_sample_m)
            and not self.checker.check_segment(a, b).crosses_land
        )
