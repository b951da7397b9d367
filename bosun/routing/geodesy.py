"""Distance math and coordinate validation shared by the route engine."""

import math
from typing import Tuple

from bosun.data.geometry import GeoPoint

EARTH_RADIUS_NM = 3440.065
METERS_PER_NM = 1852.0
NM_PER_DEGREE_LAT = 60.0


class InvalidCoordinateError(ValueError):
    """Coordinate is non-finite or out of range."""


def haversine_nm(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate great circle distance in nautical miles."""
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)
    a = (math.sin(dlat / 2) ** 2
         + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2))
         * math.sin(dlon / 2) ** 2)
    return EARTH_RADIUS_NM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def distance_nm(a: GeoPoint, b: GeoPoint) -> float:
    return haversine_nm(a.lat, a.lon, b.lat, b.lon)


def distance_m(a: GeoPoint, b: GeoPoint) -> float:
    return distance_nm(a, b) * METERS_PER_NM


def path_distance_nm(points) -> float:
    """Sum of great circle legs along a waypoint list."""
    return sum(distance_nm(points[i - 1], points[i]) for i in range(1, len(points)))


def interpolate(a: GeoPoint, b: GeoPoint, t: float) -> Tuple[float, float]:
    """Linear interpolation in lat/lon (not great-circle correct)."""
    return a.lat + t * (b.lat - a.lat), a.lon + t * (b.lon - a.lon)


def validate_coordinates(lat: float, lon: float, name: str = "point") -> GeoPoint:
    """
    Validate a coordinate pair and return it as a GeoPoint.

    Raises:
        InvalidCoordinateError: non-numeric, non-finite or out of range
    """
    try:
        lat = float(lat)
        lon = float(lon)
    except (TypeError, ValueError):
        raise InvalidCoordinateError(f"{name}: coordinates must be numbers")
    if not (math.isfinite(lat) and math.isfinite(lon)):
        raise InvalidCoordinateError(f"{name}: coordinates must be finite")
    if not -90.0 <= lat <= 90.0:
        raise InvalidCoordinateError(f"{name}: latitude {lat} outside [-90, 90]")
    if not -180.0 <= lon <= 180.0:
        raise InvalidCoordinateError(f"{name}: longitude {lon} outside [-180, 180]")
    return GeoPoint(lat, lon)
