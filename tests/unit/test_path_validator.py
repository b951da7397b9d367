"""
Unit tests for full-resolution path validation and simplification.
"""

import pytest

from bosun.data.geometry import GeoPoint
from bosun.routing.classification_cache import ClassificationCache
from bosun.routing.grid_search import GridSearch
from bosun.routing.models import FailureReason
from bosun.routing.path_validator import PathValidator
from bosun.routing.segment_checker import SegmentChecker
from bosun.routing.water_classifier import WaterClassifier


@pytest.fixture
def checker(island_store):
    return SegmentChecker(WaterClassifier(island_store, ClassificationCache()))


@pytest.fixture
def validator(checker):
    return PathValidator(checker, GridSearch(checker.classifier))


AROUND_ISLAND = [
    GeoPoint(-0.001, 0.005),
    GeoPoint(-0.001, 0.012),
    GeoPoint(0.011, 0.012),
    GeoPoint(0.011, 0.005),
]


class TestSimplify:

    def test_collinear_water_points_collapse(self, validator):
        path = [GeoPoint(-0.005, lon) for lon in (-0.005, 0.0, 0.005, 0.01, 0.015)]
        assert validator.simplify(path) == [path[0], path[-1]]

    def test_keeps_points_needed_to_avoid_land(self, validator, checker):
        simplified = validator.simplify(AROUND_ISLAND)
        assert simplified == AROUND_ISLAND
        assert not checker.path_crosses_land(simplified)

    def test_short_paths_unchanged(self, validator):
        path = [GeoPoint(0.0, 0.0), GeoPoint(1.0, 1.0)]
        assert validator.simplify(path) == path
        assert validator.simplify(path) is not path

    def test_endpoints_preserved(self, validator):
        path = [GeoPoint(-0.005, -0.005), GeoPoint(-0.004, -0.004), GeoPoint(-0.003, -0.005)]
        simplified = validator.simplify(path)
        assert simplified[0] == path[0]
        assert simplified[-1] == path[-1]


class TestValidate:

    def test_clear_path_passes(self, validator):
        result = validator.validate(AROUND_ISLAND)
        assert result.success
        assert result.failure_reason is None
        assert result.distance_nm > 0

    def test_corner_clip_is_patched(self, validator, checker):
        # Cuts across the island's south-east corner
        start, end = GeoPoint(-0.001, 0.008), GeoPoint(0.002, 0.011)
        assert checker.check_segment(start, end).crosses_land

        result = validator.validate([start, end])
        assert result.success
        assert result.waypoints[0] == start
        assert result.waypoints[-1] == end
        assert len(result.waypoints) > 2
        assert not checker.path_crosses_land(result.waypoints)

    def test_unpatchable_crossing_fails(self, checker):
        validator = PathValidator(checker, GridSearch(checker.classifier), refine_max_iterations=200)
        path = [GeoPoint(-0.005, -0.005), GeoPoint(1.005, 1.005)]

        result = validator.validate(path)
        assert not result.success
        assert result.failure_reason is FailureReason.VALIDATION_FAILED
        assert result.waypoints == path

    @pytest.mark.parametrize("path", [[], [GeoPoint(-0.005, -0.005)]])
    def test_too_short_fails(self, validator, path):
        result = validator.validate(path)
        assert not result.success
        assert result.failure_reason is FailureReason.VALIDATION_FAILED
