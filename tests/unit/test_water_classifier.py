"""
Unit tests for water classification and its bounded cache.
"""

from concurrent.futures import ThreadPoolExecutor

import pytest

from bosun.data.geometry import WaterType
from bosun.routing.classification_cache import ClassificationCache
from bosun.routing.water_classifier import MAX_GRID_POINTS, WaterClassifier


@pytest.fixture
def classifier(island_store):
    return WaterClassifier(island_store, ClassificationCache(max_size=1000))


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------
class TestClassificationCache:

    def test_get_set(self):
        cache = ClassificationCache(max_size=10)
        assert cache.get((1.0, 2.0)) is None
        cache.set((1.0, 2.0), WaterType.OCEAN)
        assert cache.get((1.0, 2.0)) is WaterType.OCEAN
        assert (1.0, 2.0) in cache

    def test_size_never_exceeds_max(self):
        cache = ClassificationCache(max_size=5)
        for i in range(50):
            cache.set((float(i), 0.0), WaterType.LAND)
            assert len(cache) <= 5
        stats = cache.get_stats()
        assert stats["size"] == 5
        assert stats["max_size"] == 5
        assert stats["evictions"] == 45

    def test_evicts_oldest_inserted_first(self):
        cache = ClassificationCache(max_size=2)
        cache.set((0.0, 0.0), WaterType.OCEAN)
        cache.set((1.0, 0.0), WaterType.OCEAN)
        # Reads do not refresh insertion order
        cache.get((0.0, 0.0))
        cache.set((2.0, 0.0), WaterType.OCEAN)
        assert (0.0, 0.0) not in cache
        assert (1.0, 0.0) in cache
        assert (2.0, 0.0) in cache

    def test_overwrite_does_not_evict(self):
        cache = ClassificationCache(max_size=2)
        cache.set((0.0, 0.0), WaterType.OCEAN)
        cache.set((1.0, 0.0), WaterType.OCEAN)
        cache.set((0.0, 0.0), WaterType.LAKE)
        assert len(cache) == 2
        assert cache.get((0.0, 0.0)) is WaterType.LAKE

    def test_hit_rate(self):
        cache = ClassificationCache(max_size=10)
        cache.set((0.0, 0.0), WaterType.OCEAN)
        cache.get((0.0, 0.0))
        cache.get((5.0, 5.0))
        stats = cache.get_stats()
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["hit_rate"] == 0.5

    def test_clear(self):
        cache = ClassificationCache(max_size=10)
        cache.set((0.0, 0.0), WaterType.OCEAN)
        assert cache.clear() == 1
        assert len(cache) == 0

    def test_concurrent_access_stays_bounded(self):
        cache = ClassificationCache(max_size=50)

        def worker(offset):
            for i in range(500):
                key = (float(offset * 1000 + i), 0.0)
                cache.set(key, WaterType.OCEAN)
                cache.get(key)
                cache.get((float(i), 1.0))
                assert len(cache) <= 50

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(worker, range(8)))

        stats = cache.get_stats()
        assert stats["size"] == 50
        assert stats["hits"] + stats["misses"] == 8 * 500 * 2
        assert stats["evictions"] == 8 * 500 - 50


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------
class TestClassify:

    @pytest.mark.parametrize("lat,lon,expected", [
        (-0.005, 0.005, WaterType.OCEAN),
        (0.015, 0.015, WaterType.OCEAN),
        (0.005, 0.005, WaterType.LAND),  # island
        (0.5, 0.5, WaterType.LAND),  # outside every polygon
        (1.005, 1.005, WaterType.LAKE),
    ])
    def test_known_points(self, classifier, lat, lon, expected):
        assert classifier.classify(lat, lon) is expected

    def test_is_water(self, classifier):
        assert classifier.is_water(-0.005, 0.005)
        assert classifier.is_water(1.005, 1.005)
        assert not classifier.is_water(0.005, 0.005)

    def test_idempotent_and_cached(self, classifier):
        first = classifier.classify(-0.00512, 0.00534)
        assert (-0.0051, 0.0053) in classifier.cache
        assert classifier.classify(-0.00512, 0.00534) is first

    def test_same_rounded_key_same_answer(self, classifier):
        # Both round to (0.0, 0.0051); classification must not depend on call order
        a = classifier.classify(0.00004, 0.00512)
        b = classifier.classify(-0.00004, 0.00508)
        assert a is b

    def test_concurrent_classification_consistent(self, classifier):
        points = [(-0.005, 0.005), (0.005, 0.005), (1.005, 1.005)] * 50
        expected = [classifier.classify(lat, lon) for lat, lon in points[:3]] * 50
        classifier.cache.clear()

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda p: classifier.classify(*p), points))
        assert results == expected
        assert len(classifier.cache) == 3

    def test_ocean_wins_over_lake(self, ocean_with_island):
        from bosun.data.polygon_store import PolygonStore

        store = PolygonStore.from_feature_sets(ocean=ocean_with_island, lakes=ocean_with_island)
        c = WaterClassifier(store, ClassificationCache())
        assert c.classify(-0.005, 0.005) is WaterType.OCEAN

    def test_no_data_is_land_and_not_cached(self, empty_store):
        c = WaterClassifier(empty_store, ClassificationCache())
        assert c.classify(-0.005, 0.005) is WaterType.LAND
        assert len(c.cache) == 0

    def test_not_loaded_is_land(self):
        from bosun.data.polygon_store import PolygonStore

        c = WaterClassifier(PolygonStore(), ClassificationCache())
        assert c.classify(10.0, 10.0) is WaterType.LAND


# ---------------------------------------------------------------------------
# Debug grid
# ---------------------------------------------------------------------------
class TestWaterGrid:

    def test_small_grid_exact(self, classifier):
        grid = classifier.water_grid(-0.01, 0.0, -0.01, 0.0, grid_size_deg=0.005)
        assert grid.count == 9
        assert grid.grid_size_deg == 0.005
        assert {p["type"] for p in grid.points} <= {"ocean", "lake", "land"}

    def test_grid_includes_max_edge(self, classifier):
        # 0.3 / 0.1 is just below 3 in floating point
        grid = classifier.water_grid(0.0, 0.3, 0.0, 0.3, grid_size_deg=0.1)
        assert grid.count == 16
        assert max(p["lat"] for p in grid.points) == pytest.approx(0.3)
        assert max(p["lon"] for p in grid.points) == pytest.approx(0.3)

    def test_grid_is_capped(self, classifier):
        grid = classifier.water_grid(-1.0, 1.0, -1.0, 1.0, grid_size_deg=0.001)
        assert 0 < grid.count <= MAX_GRID_POINTS
        assert grid.grid_size_deg > 0.001
        assert grid.requested_grid_size_deg == 0.001

    def test_custom_cap(self, classifier):
        grid = classifier.water_grid(0.0, 0.1, 0.0, 0.1, grid_size_deg=0.0001, max_points=100)
        assert grid.count <= 100

    def test_degenerate_box(self, classifier):
        grid = classifier.water_grid(0.0, 0.0, 0.0, 0.5, grid_size_deg=0.0001, max_points=50)
        assert 0 < grid.count <= 50

    @pytest.mark.parametrize("bbox,size", [
        ((1.0, 0.0, 0.0, 1.0), 0.01),
        ((0.0, 1.0, 1.0, 0.0), 0.01),
        ((0.0, 1.0, 0.0, 1.0), 0.0),
        ((0.0, 1.0, 0.0, 1.0), -0.1),
    ])
    def test_invalid_arguments(self, classifier, bbox, size):
        with pytest.raises(ValueError):
            classifier.water_grid(*bbox, grid_size_deg=size)
