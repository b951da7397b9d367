"""
On-demand spatial index over large polygon shapefiles.

Only feature bounding boxes are kept in memory (in a shapely STRtree).
Full ring geometry is read from disk with pyshp random access, and only
for features whose box contains the query point. A small bounded cache
keeps recently materialised features resident.
"""

import logging
import threading
from collections import OrderedDict
from pathlib import Path
from typing import Dict, List, Optional, Union

import numpy as np
import shapefile
from shapely.geometry import Point, box
from shapely.strtree import STRtree

from bosun.data.geometry import PolygonFeatureSet, PolygonFeatureSetBuilder

logger = logging.getLogger(__name__)


class SpatialIndexError(RuntimeError):
    """Spatial index could not be built or was queried before initialization."""


class ShapefileSpatialIndex:
    """
    Bounding-box index with lazy geometry loading.

    Usage:
        index = ShapefileSpatialIndex()
        index.initialize("data/oceans-seas/water_polygons.shp")
        index.contains_point(lon=-30.0, lat=45.0)
    """

    def __init__(self, max_resident_features: int = 256):
        self.max_resident_features = max(1, max_resident_features)
        self._reader: Optional[shapefile.Reader] = None
        self._tree: Optional[STRtree] = None
        self._feature_ids: np.ndarray = np.empty(0, dtype=np.int64)
        self._feature_count = 0
        self._resident: "OrderedDict[int, PolygonFeatureSet]" = OrderedDict()
        self._reader_lock = threading.Lock()
        self._resident_lock = threading.Lock()
        self.path: Optional[Path] = None

    @property
    def initialized(self) -> bool:
        return self._tree is not None

    def initialize(self, dataset_path: Union[str, Path]) -> None:
        """
        Build the bounding-box index without materialising ring geometry.

        Raises:
            SpatialIndexError: dataset missing or unreadable
        """
        path = Path(dataset_path)
        if not path.exists():
            raise SpatialIndexError(f"Shapefile not found: {path}")

        try:
            reader = shapefile.Reader(str(path))
            boxes = []
            feature_ids: List[int] = []
            for i, shp in enumerate(reader.iterShapes()):
                if shp.shapeType == shapefile.NULL or not getattr(shp, "bbox", None):
                    continue
                min_x, min_y, max_x, max_y = shp.bbox
                boxes.append(box(min_x, min_y, max_x, max_y))
                feature_ids.append(i)
        except (shapefile.ShapefileException, OSError, ValueError) as e:
            raise SpatialIndexError(f"Failed to index {path}: {e}") from e

        self._reader = reader
        self._feature_ids = np.asarray(feature_ids, dtype=np.int64)
        self._feature_count = len(feature_ids)
        self._tree = STRtree(boxes)
        self.path = path
        logger.info(f"Spatial index built: {self._feature_count} features from {path.name}")

    def contains_point(self, lon: float, lat: float) -> bool:
        """
        Return True if (lon, lat) lies inside the indexed polygons.

        Candidates are visited in feature order; the first feature whose
        outer ring holds the point decides.
        """
        if self._tree is None:
            raise SpatialIndexError("Spatial index queried before initialize()")

        hits = sorted(int(self._feature_ids[int(i)]) for i in self._tree.query(Point(lon, lat)))
        for feature_id in hits:
            feature = self._load_feature(feature_id)
            if feature is None:
                continue
            inside = feature.match(lat, lon)
            if inside is not None:
                return inside
        return False

    def _load_feature(self, feature_id: int) -> Optional[PolygonFeatureSet]:
        with self._resident_lock:
            feature = self._resident.get(feature_id)
            if feature is not None:
                return feature

        with self._reader_lock:
            try:
                shp = self._reader.shape(feature_id)
            except (shapefile.ShapefileException, OSError, IndexError) as e:
                logger.warning(f"Spatial index: cannot read feature {feature_id}: {e}")
                return None

        builder = PolygonFeatureSetBuilder(name=f"feature-{feature_id}")
        builder.add_geojson(shp)
        feature = builder.build()

        with self._resident_lock:
            self._resident[feature_id] = feature
            while len(self._resident) > self.max_resident_features:
                self._resident.popitem(last=False)
        return feature

    def get_stats(self) -> Dict[str, int]:
        with self._resident_lock:
            resident = len(self._resident)
        return {
            "feature_count": self._feature_count,
            "resident_features": resident,
        }

    def close(self) -> None:
        with self._reader_lock:
            if self._reader is not None:
                self._reader.close()
                self._reader = None
        self._tree = None
        with self._resident_lock:
            self._resident.clear()
