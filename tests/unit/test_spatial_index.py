"""
Unit tests for the on-demand shapefile spatial index.
"""

import pytest

from bosun.data.spatial_index import ShapefileSpatialIndex, SpatialIndexError


@pytest.fixture
def index(write_shapefile, ocean_box, lake_ring):
    idx = ShapefileSpatialIndex(max_resident_features=1)
    idx.initialize(write_shapefile([ocean_box, lake_ring]))
    yield idx
    idx.close()


class TestSpatialIndex:

    def test_initialize(self, index):
        assert index.initialized
        stats = index.get_stats()
        assert stats["feature_count"] == 2
        # Nothing materialised until queried
        assert stats["resident_features"] == 0

    @pytest.mark.parametrize("lon,lat,expected", [
        (0.005, 0.005, True),
        (1.005, 1.005, True),
        (0.5, 0.5, False),
        (-50.0, 10.0, False),
    ])
    def test_contains_point(self, index, lon, lat, expected):
        assert index.contains_point(lon, lat) is expected

    def test_resident_features_bounded(self, index):
        index.contains_point(0.005, 0.005)
        index.contains_point(1.005, 1.005)
        assert index.get_stats()["resident_features"] == 1

    def test_query_before_initialize_raises(self):
        with pytest.raises(SpatialIndexError):
            ShapefileSpatialIndex().contains_point(0.0, 0.0)

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(SpatialIndexError):
            ShapefileSpatialIndex().initialize(tmp_path / "missing.shp")

    def test_close(self, index):
        index.close()
        assert not index.initialized
        with pytest.raises(SpatialIndexError):
            index.contains_point(0.005, 0.005)

    def test_first_feature_with_outer_match_decides(self, write_shapefile, ocean_box, island_ring):
        # Feature 1 covers feature 0's hole; feature 0 is checked first
        idx = ShapefileSpatialIndex()
        idx.initialize(write_shapefile([[ocean_box, island_ring], island_ring]))
        try:
            assert not idx.contains_point(0.005, 0.005)
            assert idx.contains_point(-0.005, -0.005)
        finally:
            idx.close()
