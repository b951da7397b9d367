"""
A* grid search over water cells at a single resolution.

Grid-based approach:
1. Discretize lat/lon into square cells of ``resolution_deg``
2. Snap start/end to the nearest water cell (expanding Chebyshev rings)
3. A* over 8-connected water cells, cost = great circle distance
4. Stop once a cell is within two cell widths of the goal

Cells are keyed by integer (row, col) = round(coord / resolution), so
neighbour keys never drift with floating point accumulation.
"""

import heapq
import itertools
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from bosun.data.geometry import GeoPoint
from bosun.routing.geodesy import NM_PER_DEGREE_LAT, haversine_nm
from bosun.routing.models import FailureReason, SearchResult
from bosun.routing.water_classifier import WaterClassifier

logger = logging.getLogger(__name__)

Cell = Tuple[int, int]

# 8-connected grid: 4 cardinal + 4 diagonal
DIRECTIONS = [
    (1, 0), (-1, 0), (0, 1), (0, -1),
    (1, 1), (1, -1), (-1, 1), (-1, -1),
]

DEFAULT_SNAP_RADIUS = 5


@dataclass(order=True)
class PathNode:
    """Node in A* search priority queue."""
    f_score: float  # g + h (total estimated cost)
    seq: int  # insertion order, breaks f_score ties
    cell: Cell = field(compare=False)
    g_score: float = field(compare=False)


class GridSearch:
    """Single-resolution water-cell A*."""

    def __init__(self, classifier: WaterClassifier, snap_radius: int = DEFAULT_SNAP_RADIUS):
        self.classifier = classifier
        self.snap_radius = snap_radius

    @staticmethod
    def cell_of(lat: float, lon: float, resolution: float) -> Cell:
        return round(lat / resolution), round(lon / resolution)

    @staticmethod
    def cell_center(cell: Cell, resolution: float) -> Tuple[float, float]:
        return cell[0] * resolution, cell[1] * resolution

    def _is_water_cell(self, cell: Cell, resolution: float) -> bool:
        lat, lon = self.cell_center(cell, resolution)
        if not (-90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0):
            return False
        return self.classifier.is_water(lat, lon)

    def snap_to_water(self, point: GeoPoint, resolution: float) -> Optional[Cell]:
        """
        Find the water cell nearest to a point on this grid.

        Tests the snapped cell first, then the perimeters of expanding
        square rings up to ``snap_radius`` cells.
        """
        row, col = self.cell_of(point.lat, point.lon, resolution)
        if self._is_water_cell((row, col), resolution):
            return row, col

        for radius in range(1, self.snap_radius + 1):
            for d_row in range(-radius, radius + 1):
                for d_col in range(-radius, radius + 1):
                    # Only the perimeter of this ring
                    if abs(d_row) != radius and abs(d_col) != radius:
                        continue
                    cell = (row + d_row, col + d_col)
                    if self._is_water_cell(cell, resolution):
                        return cell
        return None

    def search(
        self,
        start: GeoPoint,
        end: GeoPoint,
        resolution: float,
        max_iterations: int,
    ) -> SearchResult:
        """
        Run A* from start to end at the given resolution.

        Returns:
            SearchResult whose waypoints run from the true start, through
            the cell centres, to the true end
        """
        start_cell = self.snap_to_water(start, resolution)
        end_cell = self.snap_to_water(end, resolution)
        if start_cell is None or end_cell is None:
            which = "start" if start_cell is None else "end"
            logger.debug(f"No water cell near {which} at {resolution}°")
            return SearchResult(
                success=False,
                waypoints=[start, end],
                resolution_deg=resolution,
                failure_reason=FailureReason.SNAP_FAILED,
            )

        end_lat, end_lon = self.cell_center(end_cell, resolution)
        goal_radius_nm = 2 * resolution * NM_PER_DEGREE_LAT

        def heuristic(cell: Cell) -> float:
            lat, lon = self.cell_center(cell, resolution)
            return haversine_nm(lat, lon, end_lat, end_lon)

        counter = itertools.count()
        g_scores: Dict[Cell, float] = {start_cell: 0.0}
        parents: Dict[Cell, Optional[Cell]] = {start_cell: None}
        closed: Set[Cell] = set()
        open_heap = [PathNode(heuristic(start_cell), next(counter), start_cell, 0.0)]

        iterations = 0
        goal: Optional[Cell] = None

        while open_heap and iterations < max_iterations:
            node = heapq.heappop(open_heap)
            if node.cell in closed or node.g_score > g_scores.get(node.cell, float("inf")):
                continue  # Stale entry
            iterations += 1
            closed.add(node.cell)

            if heuristic(node.cell) < goal_radius_nm:
                goal = node.cell
                break

            lat, lon = self.cell_center(node.cell, resolution)
            for d_row, d_col in DIRECTIONS:
                neighbor = (node.cell[0] + d_row, node.cell[1] + d_col)
                if neighbor in closed:
                    continue
                if not self._is_water_cell(neighbor, resolution):
                    continue

                n_lat, n_lon = self.cell_center(neighbor, resolution)
                tentative_g = node.g_score + haversine_nm(lat, lon, n_lat, n_lon)
                if tentative_g < g_scores.get(neighbor, float("inf")):
                    g_scores[neighbor] = tentative_g
                    parents[neighbor] = node.cell
                    heapq.heappush(
                        open_heap,
                        PathNode(tentative_g + heuristic(neighbor), next(counter), neighbor, tentative_g),
                    )

        if goal is None:
            logger.debug(
                f"A* at {resolution}° gave up after {iterations} iterations "
                f"(open set {'empty' if not open_heap else 'not empty'})"
            )
            return SearchResult(
                success=False,
                waypoints=[start, end],
                resolution_deg=resolution,
                iterations=iterations,
                failure_reason=FailureReason.SEARCH_EXHAUSTED,
            )

        return SearchResult(
            success=True,
            waypoints=[start] + self._reconstruct(parents, goal, resolution) + [end],
            resolution_deg=resolution,
            iterations=iterations,
        )

    def _reconstruct(
        self,
        parents: Dict[Cell, Optional[Cell]],
        goal: Cell,
        resolution: float,
    ) -> List[GeoPoint]:
        path: List[GeoPoint] = []
        cell: Optional[Cell] = goal
        while cell is not None:
            path.append(GeoPoint(*self.cell_center(cell, resolution)))
            cell = parents[cell]
        path.reverse()
        return path
