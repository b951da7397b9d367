"""Water polygon datasets: geometry model, loaders, spatial index and store."""

from .geometry import (
    GeoPoint,
    MultiPolygon,
    Polygon,
    PolygonFeatureSet,
    PolygonFeatureSetBuilder,
    WaterType,
    feature_set_from_rings,
)
from .loaders import DatasetLoadError
from .polygon_store import PolygonStore
from .spatial_index import ShapefileSpatialIndex, SpatialIndexError

__all__ = [
    'GeoPoint',
    'MultiPolygon',
    'Polygon',
    'PolygonFeatureSet',
    'PolygonFeatureSetBuilder',
    'WaterType',
    'feature_set_from_rings',
    'DatasetLoadError',
    'PolygonStore',
    'ShapefileSpatialIndex',
    'SpatialIndexError',
]
