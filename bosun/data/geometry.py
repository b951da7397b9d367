"""
Water polygon geometry for point classification.

Rings are stored in one flat numpy coordinate arena and referenced by
index range, so a dataset of many thousands of polygons costs a handful
of arrays rather than one Python object per vertex.

Coordinates inside the arena are (lon, lat), matching GeoJSON and
shapefile order. Public APIs take (lat, lon).
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

logger = logging.getLogger(__name__)


class WaterType(str, Enum):
    """Classification of a coordinate."""
    OCEAN = "ocean"
    LAKE = "lake"
    LAND = "land"

    @property
    def navigable(self) -> bool:
        return self is not WaterType.LAND


@dataclass(frozen=True)
class GeoPoint:
    """Geographic position in decimal degrees."""
    lat: float
    lon: float

    def as_dict(self) -> Dict[str, float]:
        return {"lat": self.lat, "lon": self.lon}


@dataclass(frozen=True)
class Polygon:
    """Outer ring plus holes, as ring ids into a RingArena."""
    outer: int
    holes: Tuple[int, ...] = ()


@dataclass(frozen=True)
class MultiPolygon:
    polygons: Tuple[Polygon, ...]


Geometry = Union[Polygon, MultiPolygon]


def point_in_ring(xs: np.ndarray, ys: np.ndarray, lon: float, lat: float) -> bool:
    """
    Ray-casting test of (lon, lat) against one ring.

    Counts crossings of a horizontal ray from the point towards +x. Points
    exactly on an edge may fall either way.
    """
    xj = np.roll(xs, 1)
    yj = np.roll(ys, 1)
    straddles = (ys > lat) != (yj > lat)
    with np.errstate(divide="ignore", invalid="ignore"):
        x_cross = (xj - xs) * (lat - ys) / (yj - ys) + xs
    crossings = np.count_nonzero(straddles & (lon < x_cross))
    return crossings % 2 == 1


class RingArena:
    """Flat storage for ring coordinates with per-ring bounding boxes."""

    def __init__(self, coords: np.ndarray, offsets: np.ndarray):
        self.coords = coords
        self.offsets = offsets
        if len(offsets) > 1:
            self.bboxes = np.array([
                (
                    coords[start:end, 0].min(), coords[start:end, 1].min(),
                    coords[start:end, 0].max(), coords[start:end, 1].max(),
                )
                for start, end in zip(offsets[:-1], offsets[1:])
            ], dtype=np.float64)
        else:
            self.bboxes = np.empty((0, 4), dtype=np.float64)

    def ring(self, ring_id: int) -> np.ndarray:
        return self.coords[self.offsets[ring_id]:self.offsets[ring_id + 1]]

    def contains(self, ring_id: int, lon: float, lat: float) -> bool:
        min_x, min_y, max_x, max_y = self.bboxes[ring_id]
        if lon < min_x or lon > max_x or lat < min_y or lat > max_y:
            return False
        ring = self.ring(ring_id)
        return point_in_ring(ring[:, 0], ring[:, 1], lon, lat)


class PolygonFeatureSet:
    """
    Read-only collection of water polygons from one dataset.

    Polygons are tested in dataset order. The first polygon whose outer
    ring contains a point decides: inside unless one of its holes also
    contains the point.
    """

    def __init__(
        self,
        arena: RingArena,
        features: Sequence[Geometry],
        name: str = "polygons",
        skipped_rings: int = 0,
    ):
        self.arena = arena
        self.features: Tuple[Geometry, ...] = tuple(features)
        self.name = name
        self.skipped_rings = skipped_rings
        self._polygons: Tuple[Polygon, ...] = tuple(
            poly for feat in self.features for poly in _iter_polygons(feat)
        )
        if self._polygons:
            self._outer_bboxes = arena.bboxes[[p.outer for p in self._polygons]]
        else:
            self._outer_bboxes = np.empty((0, 4), dtype=np.float64)

    def __len__(self) -> int:
        return len(self.features)

    @property
    def polygon_count(self) -> int:
        return len(self._polygons)

    @property
    def bounds(self) -> Optional[Tuple[float, float, float, float]]:
        """(min_lon, min_lat, max_lon, max_lat) of all outer rings."""
        if not self._polygons:
            return None
        b = self._outer_bboxes
        return (float(b[:, 0].min()), float(b[:, 1].min()),
                float(b[:, 2].max()), float(b[:, 3].max()))

    def match(self, lat: float, lon: float) -> Optional[bool]:
        """
        Decide containment by the first polygon whose outer ring holds the point.

        Returns:
            None if no outer ring contains the point, otherwise whether the
            point is outside that polygon's holes
        """
        if not self._polygons:
            return None
        b = self._outer_bboxes
        candidates = np.nonzero(
            (b[:, 0] <= lon) & (lon <= b[:, 2]) & (b[:, 1] <= lat) & (lat <= b[:, 3])
        )[0]
        for idx in candidates:
            poly = self._polygons[idx]
            if not self.arena.contains(poly.outer, lon, lat):
                continue
            return not any(self.arena.contains(hole, lon, lat) for hole in poly.holes)
        return None

    def contains(self, lat: float, lon: float) -> bool:
        return bool(self.match(lat, lon))


def _iter_polygons(geometry: Geometry) -> Iterable[Polygon]:
    if isinstance(geometry, MultiPolygon):
        return geometry.polygons
    return (geometry,)


class PolygonFeatureSetBuilder:
    """
    Accumulates GeoJSON-like geometries into a PolygonFeatureSet.

    Corrupt input never raises: rings with fewer than three finite points
    are dropped, and a polygon whose outer ring is dropped is skipped.
    """

    def __init__(self, name: str = "polygons"):
        self.name = name
        self._chunks: List[np.ndarray] = []
        self._offsets: List[int] = [0]
        self._features: List[Geometry] = []
        self._skipped_rings = 0
        self._skipped_features = 0

    def __len__(self) -> int:
        return len(self._features)

    def add_geojson(self, geometry: Any) -> bool:
        """
        Add a Polygon or MultiPolygon mapping (or object with __geo_interface__).

        Returns:
            True if at least one polygon was added
        """
        if hasattr(geometry, "__geo_interface__"):
            geometry = geometry.__geo_interface__
        if not isinstance(geometry, Mapping):
            self._skipped_features += 1
            return False

        geom_type = geometry.get("type")
        coordinates = geometry.get("coordinates") or []
        try:
            if geom_type == "Polygon":
                polygon = self._add_polygon(coordinates)
                if polygon is None:
                    self._skipped_features += 1
                    return False
                self._features.append(polygon)
                return True
            if geom_type == "MultiPolygon":
                polygons = [p for p in (self._add_polygon(rings) for rings in coordinates) if p]
                if not polygons:
                    self._skipped_features += 1
                    return False
                self._features.append(MultiPolygon(tuple(polygons)))
                return True
            if geom_type == "GeometryCollection":
                added = [self.add_geojson(g) for g in geometry.get("geometries") or []]
                return any(added)
        except (TypeError, ValueError) as e:
            logger.debug(f"{self.name}: skipping malformed geometry: {e}")

        self._skipped_features += 1
        return False

    def _add_polygon(self, rings: Sequence) -> Optional[Polygon]:
        if not rings:
            return None
        outer = self._add_ring(rings[0])
        if outer is None:
            return None
        holes = tuple(h for h in (self._add_ring(r) for r in rings[1:]) if h is not None)
        return Polygon(outer=outer, holes=holes)

    def _add_ring(self, ring: Sequence) -> Optional[int]:
        try:
            arr = np.asarray([(float(p[0]), float(p[1])) for p in ring], dtype=np.float64)
        except (TypeError, ValueError, IndexError):
            self._skipped_rings += 1
            return None
        if arr.ndim != 2 or len(arr) < 3 or not np.isfinite(arr).all():
            self._skipped_rings += 1
            return None
        ring_id = len(self._offsets) - 1
        self._chunks.append(arr)
        self._offsets.append(self._offsets[-1] + len(arr))
        return ring_id

    def build(self) -> PolygonFeatureSet:
        if self._chunks:
            coords = np.concatenate(self._chunks)
        else:
            coords = np.empty((0, 2), dtype=np.float64)
        arena = RingArena(coords, np.asarray(self._offsets, dtype=np.int64))
        if self._skipped_rings or self._skipped_features:
            logger.debug(
                f"{self.name}: skipped {self._skipped_rings} rings, "
                f"{self._skipped_features} features"
            )
        return PolygonFeatureSet(
            arena, self._features, name=self.name, skipped_rings=self._skipped_rings
        )


def feature_set_from_rings(
    polygons: Iterable[Sequence[Sequence[Tuple[float, float]]]],
    name: str = "polygons",
) -> PolygonFeatureSet:
    """
    Build a feature set from (lat, lon) rings.

    Each polygon is [outer_ring, *hole_rings]; each ring a list of (lat, lon).
    """
    builder = PolygonFeatureSetBuilder(name=name)
    for rings in polygons:
        builder.add_geojson({
            "type": "Polygon",
            "coordinates": [[(lon, lat) for lat, lon in ring] for ring in rings],
        })
    return builder.build()
