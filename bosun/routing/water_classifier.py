"""
Water classifier for water-only routing.

Provides classify(lat, lon) -> WaterType against the loaded polygon store.

Order of tests:
1. Classification cache (coordinate rounded to ~11m)
2. Ocean/sea polygons (spatial index or in-memory ray casting) -> OCEAN
3. Lake/river polygons -> LAKE
4. Otherwise LAND

With no polygon data loaded every point is LAND: the router must never
guess water.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Union

from bosun.data.geometry import WaterType
from bosun.data.polygon_store import PolygonStore
from bosun.routing.classification_cache import ClassificationCache

logger = logging.getLogger(__name__)

DEFAULT_GRID_SIZE_DEG = 0.005  # ~500m
MAX_GRID_POINTS = 2500  # 50x50
GRID_EPSILON = 1e-9


@dataclass
class WaterGrid:
    """Classification samples over a bounding box (debug overlay)."""
    points: List[Dict[str, Union[float, str]]] = field(default_factory=list)
    requested_grid_size_deg: float = DEFAULT_GRID_SIZE_DEG
    grid_size_deg: float = DEFAULT_GRID_SIZE_DEG

    @property
    def count(self) -> int:
        return len(self.points)


class WaterClassifier:
    """Point classification with a shared bounded cache."""

    def __init__(
        self,
        store: PolygonStore,
        cache: ClassificationCache,
        precision: int = 4,
    ):
        self.store = store
        self.cache = cache
        self.precision = precision

    def rounded(self, lat: float, lon: float):
        return round(lat, self.precision), round(lon, self.precision)

    def classify(self, lat: float, lon: float) -> WaterType:
        """
        Classify a coordinate as ocean, lake or land.

        The polygon test runs on the rounded coordinate, so the result is a
        function of the cache key alone.
        """
        if not self.store.loaded or not self.store.has_data:
            return WaterType.LAND

        key = self.rounded(lat, lon)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        r_lat, r_lon = key
        result = WaterType.LAND
        if self.store.contains_ocean(r_lat, r_lon):
            result = WaterType.OCEAN
        elif self.store.contains_lake(r_lat, r_lon):
            result = WaterType.LAKE

        self.cache.set(key, result)
        return result

    def is_water(self, lat: float, lon: float) -> bool:
        return self.classify(lat, lon).navigable

    def water_grid(
        self,
        min_lat: float,
        max_lat: float,
        min_lon: float,
        max_lon: float,
        grid_size_deg: float = DEFAULT_GRID_SIZE_DEG,
        max_points: int = MAX_GRID_POINTS,
    ) -> WaterGrid:
        """
        Classify a regular grid over a bounding box.

        The spacing is coarsened until the grid fits within max_points.
        """
        if max_lat < min_lat or max_lon < min_lon:
            raise ValueError("Bounding box minimum exceeds maximum")
        if grid_size_deg <= 0 or not math.isfinite(grid_size_deg):
            raise ValueError("Grid size must be a positive number")

        grid = WaterGrid(requested_grid_size_deg=grid_size_deg, grid_size_deg=grid_size_deg)
        if not self.store.loaded:
            return grid

        lat_range = max_lat - min_lat
        lon_range = max_lon - min_lon

        def steps(size: float):
            # Tolerance keeps the max edge when the range is an exact multiple
            return int(lat_range / size + GRID_EPSILON) + 1, int(lon_range / size + GRID_EPSILON) + 1

        step = grid_size_deg
        n_lat, n_lon = steps(step)
        if n_lat * n_lon > max_points:
            area = lat_range * lon_range
            if area > 0:
                step = math.sqrt(area / max_points)
            else:
                step = max(lat_range, lon_range) / max(max_points - 1, 1)
            n_lat, n_lon = steps(step)
            while n_lat * n_lon > max_points:
                step *= 1.05
                n_lat, n_lon = steps(step)
            logger.debug(
                f"Water grid coarsened {grid_size_deg}° -> {step:.5f}° "
                f"({n_lat}x{n_lon} points)"
            )

        grid.grid_size_deg = step
        for i in range(n_lat):
            lat = min_lat + i * step
            for j in range(n_lon):
                lon = min_lon + j * step
                grid.points.append({
                    "lat": lat,
                    "lon": lon,
                    "type": self.classify(lat, lon).value,
                })
        return grid
