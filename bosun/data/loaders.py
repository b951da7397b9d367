"""
Readers that turn on-disk water datasets into PolygonFeatureSets.

Supported formats:
1. Shapefile (.shp) via pyshp, read fully into memory
2. GeoJSON FeatureCollection (pre-converted interchange files)
3. OSM PBF extracts via pyosmium area assembly
"""

import json
import logging
from pathlib import Path
from typing import Union

import osmium
import osmium.geom
import shapefile

from bosun.data.geometry import PolygonFeatureSet, PolygonFeatureSetBuilder

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class DatasetLoadError(RuntimeError):
    """A water dataset could not be read."""


def load_shapefile(path: PathLike, name: str = "shapefile") -> PolygonFeatureSet:
    """Read every polygon of a shapefile into memory."""
    path = Path(path)
    builder = PolygonFeatureSetBuilder(name=name)
    try:
        with shapefile.Reader(str(path)) as reader:
            for shp in reader.iterShapes():
                if shp.shapeType == shapefile.NULL:
                    continue
                builder.add_geojson(shp)
    except (shapefile.ShapefileException, OSError, ValueError) as e:
        raise DatasetLoadError(f"Failed to read shapefile {path}: {e}") from e

    feature_set = builder.build()
    logger.info(f"Loaded {len(feature_set)} {name} features from {path.name}")
    return feature_set


def load_geojson(path: PathLike, name: str = "geojson") -> PolygonFeatureSet:
    """Read polygons from a GeoJSON FeatureCollection, Feature or bare geometry."""
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise DatasetLoadError(f"Failed to read GeoJSON {path}: {e}") from e

    builder = PolygonFeatureSetBuilder(name=name)
    if isinstance(data, dict) and data.get("type") == "FeatureCollection":
        for feature in data.get("features") or []:
            if isinstance(feature, dict) and feature.get("geometry"):
                builder.add_geojson(feature["geometry"])
    elif isinstance(data, dict) and data.get("type") == "Feature":
        if data.get("geometry"):
            builder.add_geojson(data["geometry"])
    else:
        builder.add_geojson(data)

    feature_set = builder.build()
    logger.info(f"Loaded {len(feature_set)} {name} features from {path.name}")
    return feature_set


class _WaterAreaHandler(osmium.SimpleHandler):
    """Collects assembled OSM areas (closed ways and multipolygon relations)."""

    def __init__(self, builder: PolygonFeatureSetBuilder):
        super().__init__()
        self.builder = builder
        self.factory = osmium.geom.GeoJSONFactory()
        self.failed = 0

    def area(self, a):
        try:
            geometry = json.loads(self.factory.create_multipolygon(a))
        except RuntimeError:
            # Incomplete or self-intersecting area
            self.failed += 1
            return
        self.builder.add_geojson(geometry)


def load_osm_pbf(path: PathLike, name: str = "osm") -> PolygonFeatureSet:
    """Assemble water areas from an OSM PBF extract."""
    path = Path(path)
    builder = PolygonFeatureSetBuilder(name=name)
    handler = _WaterAreaHandler(builder)
    try:
        handler.apply_file(str(path), locations=True)
    except (RuntimeError, OSError) as e:
        raise DatasetLoadError(f"Failed to read PBF {path}: {e}") from e

    if handler.failed:
        logger.warning(f"{path.name}: {handler.failed} areas could not be assembled")
    feature_set = builder.build()
    logger.info(f"Loaded {len(feature_set)} {name} features from {path.name}")
    return feature_set
