"""
Polygon store for water detection.

Holds the ocean/sea and lake/river polygon datasets used by the water
classifier. Loaded once, then read-only.

Ocean/sea search order:
1. oceans-seas/water_polygons.shp
2. water-polygons-split-4326/water_polygons.shp
3. water-polygons.json (pre-converted GeoJSON)
4. ocean.json (Natural Earth)

Shapefiles above the size threshold are served through the on-demand
spatial index instead of being read into memory.

Lake/river search order:
1. OSM_WaterLayer.pbf
2. osm-water.json (pre-converted GeoJSON)
3. lakes.json (Natural Earth)
"""

import logging
import threading
from pathlib import Path
from typing import Any, Dict, Optional, Union

from bosun.data.geometry import PolygonFeatureSet
from bosun.data.loaders import DatasetLoadError, load_geojson, load_osm_pbf, load_shapefile
from bosun.data.spatial_index import ShapefileSpatialIndex, SpatialIndexError

logger = logging.getLogger(__name__)

OCEAN_SHAPEFILES = (
    Path("oceans-seas") / "water_polygons.shp",
    Path("water-polygons-split-4326") / "water_polygons.shp",
)
OCEAN_GEOJSON = ("water-polygons.json", "ocean.json")
LAKE_PBF = "OSM_WaterLayer.pbf"
LAKE_GEOJSON = ("osm-water.json", "lakes.json")

BYTES_PER_MB = 1024 * 1024


class PolygonStore:
    """
    Ocean and lake polygon datasets.

    Either an ocean spatial index or an in-memory ocean feature set is
    active, never both.
    """

    def __init__(
        self,
        spatial_index_threshold_mb: float = 100.0,
        spatial_index_feature_cache: int = 256,
    ):
        self.spatial_index_threshold_mb = spatial_index_threshold_mb
        self.spatial_index_feature_cache = spatial_index_feature_cache
        self.ocean_index: Optional[ShapefileSpatialIndex] = None
        self.ocean_polygons: Optional[PolygonFeatureSet] = None
        self.lake_polygons: Optional[PolygonFeatureSet] = None
        self.sources: Dict[str, str] = {}
        self._loaded = False
        self._lock = threading.Lock()

    @classmethod
    def from_feature_sets(
        cls,
        ocean: Optional[PolygonFeatureSet] = None,
        lakes: Optional[PolygonFeatureSet] = None,
        ocean_index: Optional[ShapefileSpatialIndex] = None,
    ) -> "PolygonStore":
        """Build an already-loaded store from prepared datasets."""
        store = cls()
        store.ocean_polygons = ocean
        store.lake_polygons = lakes
        store.ocean_index = ocean_index
        if ocean is not None:
            store.sources["ocean"] = ocean.name
        if ocean_index is not None:
            store.sources["ocean"] = str(ocean_index.path or "spatial-index")
        if lakes is not None:
            store.sources["lakes"] = lakes.name
        store._loaded = True
        return store

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def uses_spatial_index(self) -> bool:
        return self.ocean_index is not None

    @property
    def has_data(self) -> bool:
        return (
            self.ocean_index is not None
            or self.ocean_polygons is not None
            or self.lake_polygons is not None
        )

    def load(self, data_dir: Union[str, Path]) -> bool:
        """
        Load all datasets found under data_dir. Thread-safe, runs once.

        Returns:
            True if any water data is available afterwards
        """
        if self._loaded:
            return self.has_data

        with self._lock:
            # Double-check after acquiring lock
            if self._loaded:
                return self.has_data

            data_dir = Path(data_dir)
            logger.info(f"Loading water detection data from {data_dir}")
            self._load_ocean(data_dir)
            self._load_lakes(data_dir)

            if not self.has_data:
                logger.warning(
                    f"No water detection data loaded. Place oceans-seas/ or "
                    f"{LAKE_PBF} in {data_dir}"
                )
            else:
                logger.info(f"Water detection data sources: {self.summary()}")

            self._loaded = True
            return self.has_data

    def _load_ocean(self, data_dir: Path) -> None:
        for rel in OCEAN_SHAPEFILES:
            shp_path = data_dir / rel
            if not shp_path.exists():
                continue

            size_mb = shp_path.stat().st_size / BYTES_PER_MB
            try:
                if size_mb > self.spatial_index_threshold_mb:
                    logger.info(
                        f"Loading large shapefile ({size_mb:.0f}MB) with spatial indexing"
                    )
                    index = ShapefileSpatialIndex(
                        max_resident_features=self.spatial_index_feature_cache
                    )
                    index.initialize(shp_path)
                    self.ocean_index = index
                else:
                    self.ocean_polygons = load_shapefile(shp_path, name="ocean")
                self.sources["ocean"] = str(shp_path)
                return
            except (SpatialIndexError, DatasetLoadError) as e:
                logger.error(f"Ocean shapefile {shp_path} unusable: {e}")

        for filename in OCEAN_GEOJSON:
            json_path = data_dir / filename
            if not json_path.exists():
                continue
            try:
                self.ocean_polygons = load_geojson(json_path, name="ocean")
                self.sources["ocean"] = str(json_path)
                return
            except DatasetLoadError as e:
                logger.error(f"Ocean GeoJSON {json_path} unusable: {e}")

    def _load_lakes(self, data_dir: Path) -> None:
        pbf_path = data_dir / LAKE_PBF
        if pbf_path.exists():
            try:
                self.lake_polygons = load_osm_pbf(pbf_path, name="lake")
                self.sources["lakes"] = str(pbf_path)
                return
            except DatasetLoadError as e:
                logger.error(f"Failed to load PBF: {e}")

        for filename in LAKE_GEOJSON:
            json_path = data_dir / filename
            if not json_path.exists():
                continue
            try:
                self.lake_polygons = load_geojson(json_path, name="lake")
                self.sources["lakes"] = str(json_path)
                return
            except DatasetLoadError as e:
                logger.error(f"Lake GeoJSON {json_path} unusable: {e}")

    def contains_ocean(self, lat: float, lon: float) -> bool:
        if self.ocean_index is not None:
            return self.ocean_index.contains_point(lon, lat)
        if self.ocean_polygons is not None:
            return self.ocean_polygons.contains(lat, lon)
        return False

    def contains_lake(self, lat: float, lon: float) -> bool:
        if self.lake_polygons is not None:
            return self.lake_polygons.contains(lat, lon)
        return False

    def summary(self) -> Dict[str, Any]:
        """Feature counts and sources per dataset."""
        ocean: Optional[Dict[str, Any]] = None
        if self.ocean_index is not None:
            ocean = {"mode": "spatial_index", **self.ocean_index.get_stats()}
        elif self.ocean_polygons is not None:
            ocean = {"mode": "in_memory", "feature_count": len(self.ocean_polygons)}
        lakes = None
        if self.lake_polygons is not None:
            lakes = {"mode": "in_memory", "feature_count": len(self.lake_polygons)}
        return {"ocean": ocean, "lakes": lakes, "sources": dict(self.sources)}

    def close(self) -> None:
        if self.ocean_index is not None:
            self.ocean_index.close()
