"""
Unit tests for single-resolution grid search (snapping + A*).
"""

import heapq

import pytest

from bosun.data.geometry import GeoPoint
from bosun.routing.classification_cache import ClassificationCache
from bosun.routing.geodesy import NM_PER_DEGREE_LAT, distance_nm
from bosun.routing.grid_search import DIRECTIONS, GridSearch, PathNode
from bosun.routing.models import FailureReason
from bosun.routing.water_classifier import WaterClassifier

RES = 0.001


@pytest.fixture
def search(island_store):
    return GridSearch(WaterClassifier(island_store, ClassificationCache()), snap_radius=5)


class TestPathNode:

    def test_ordered_by_f_score_then_sequence(self):
        heap = []
        heapq.heappush(heap, PathNode(2.0, 0, (0, 0), 0.0))
        heapq.heappush(heap, PathNode(1.0, 2, (1, 1), 0.0))
        heapq.heappush(heap, PathNode(1.0, 1, (2, 2), 0.0))
        assert [heapq.heappop(heap).cell for _ in range(3)] == [(2, 2), (1, 1), (0, 0)]

    def test_eight_directions(self):
        assert len(DIRECTIONS) == 8
        assert len(set(DIRECTIONS)) == 8
        assert (0, 0) not in DIRECTIONS


class TestSnapToWater:

    def test_water_point_snaps_to_own_cell(self, search):
        assert search.snap_to_water(GeoPoint(-0.005, -0.005), RES) == (-5, -5)

    def test_land_point_near_coast_snaps_to_water(self, search):
        # 2 cells inside the island's north coast
        cell = search.snap_to_water(GeoPoint(0.008, 0.005), RES)
        assert cell is not None
        lat, lon = search.cell_center(cell, RES)
        assert search.classifier.is_water(lat, lon)
        assert max(abs(cell[0] - 8), abs(cell[1] - 5)) <= 5

    def test_land_point_far_from_water_fails(self, search):
        # Centre of the island is 25 cells from the nearest coast at 0.0002°
        assert search.snap_to_water(GeoPoint(0.005, 0.005), 0.0002) is None

    def test_out_of_world_cells_are_never_water(self, search):
        assert not search._is_water_cell((91_000, 0), RES)
        assert not search._is_water_cell((0, -181_000), RES)


class TestSearch:

    def test_routes_around_island(self, search):
        start, end = GeoPoint(-0.001, 0.005), GeoPoint(0.011, 0.005)
        result = search.search(start, end, RES, max_iterations=50_000)

        assert result.success
        assert result.failure_reason is None
        assert result.waypoints[0] == start
        assert result.waypoints[-1] == end
        assert result.iterations > 0
        for wp in result.waypoints[1:-1]:
            assert search.classifier.is_water(wp.lat, wp.lon)

    def test_grid_steps_are_adjacent(self, search):
        result = search.search(GeoPoint(-0.001, 0.005), GeoPoint(0.011, 0.005), RES, 50_000)
        cells = [search.cell_of(wp.lat, wp.lon, RES) for wp in result.waypoints[1:-1]]
        for a, b in zip(cells, cells[1:]):
            assert (b[0] - a[0], b[1] - a[1]) in DIRECTIONS

    def test_last_cell_within_goal_radius(self, search):
        end = GeoPoint(0.011, 0.005)
        result = search.search(GeoPoint(-0.001, 0.005), end, RES, 50_000)
        last_cell = result.waypoints[-2]
        assert distance_nm(last_cell, end) < 3 * RES * NM_PER_DEGREE_LAT

    def test_iteration_cap_exhausts(self, search):
        result = search.search(GeoPoint(-0.001, 0.005), GeoPoint(0.011, 0.005), RES, max_iterations=3)
        assert not result.success
        assert result.failure_reason is FailureReason.SEARCH_EXHAUSTED
        assert result.iterations <= 3
        assert len(result.waypoints) == 2

    def test_unreachable_goal_exhausts_open_set(self, island_store):
        # Start in the ocean, end in the lake: no connecting water
        result = GridSearch(WaterClassifier(island_store, ClassificationCache())).search(
            GeoPoint(-0.005, -0.005), GeoPoint(1.005, 1.005), 0.001, max_iterations=50_000
        )
        assert not result.success
        assert result.failure_reason is FailureReason.SEARCH_EXHAUSTED
        # Every ocean cell of the 30x30 box was expanded before giving up
        assert 0 < result.iterations < 50_000

    def test_snap_failure_reported(self, search):
        result = search.search(GeoPoint(0.005, 0.005), GeoPoint(0.011, 0.005), 0.0002, 1000)
        assert not result.success
        assert result.failure_reason is FailureReason.SNAP_FAILED
        assert result.iterations == 0
