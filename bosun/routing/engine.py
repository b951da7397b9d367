"""
Route engine facade.

Wires the polygon store, classification cache, classifier, segment
checker, grid search, validator and pathfinder together once, so the
transport layer and the worker only ever hold a single object.

Usage:
    engine = RouteEngine.from_settings(settings)
    engine.load()
    result = engine.find_route(50.80, -1.30, 50.76, -1.10)
"""

import logging
from typing import Any, Dict, Optional

from bosun.config import RoutingSettings, get_settings
from bosun.data.geometry import WaterType
from bosun.data.polygon_store import PolygonStore
from bosun.routing.classification_cache import ClassificationCache
from bosun.routing.geodesy import validate_coordinates
from bosun.routing.grid_search import GridSearch
from bosun.routing.models import FailureReason, RouteResult
from bosun.routing.path_validator import PathValidator
from bosun.routing.pathfinder import MultiResolutionPathfinder
from bosun.routing.segment_checker import SegmentCheck, SegmentChecker
from bosun.routing.water_classifier import (
    DEFAULT_GRID_SIZE_DEG,
    MAX_GRID_POINTS,
    WaterClassifier,
    WaterGrid,
)

logger = logging.getLogger(__name__)


class RouteEngine:
    """Water classification and water-only routing over one polygon store."""

    def __init__(self, store: PolygonStore, settings: Optional[RoutingSettings] = None):
        self.settings = settings or get_settings()
        self.store = store
        self.cache = ClassificationCache(max_size=self.settings.cache_max_size)
        self.classifier = WaterClassifier(store, self.cache, precision=self.settings.cache_precision)
        self.checker = SegmentChecker(self.classifier, sample_interval_m=self.settings.segment_sample_m)
        self.search = GridSearch(self.classifier, snap_radius=self.settings.snap_radius_cells)
        self.validator = PathValidator(
            self.checker,
            self.search,
            refine_resolution_deg=self.settings.refine_resolution_deg,
            refine_max_iterations=self.settings.refine_max_iterations,
            simplify_sample_m=self.settings.simplify_sample_m,
        )
        self.pathfinder = MultiResolutionPathfinder(
            self.checker,
            self.search,
            self.validator,
            resolutions=self.settings.grid_resolutions_deg,
            max_iterations=self.settings.max_iterations,
        )

    @classmethod
    def from_settings(cls, settings: Optional[RoutingSettings] = None) -> "RouteEngine":
        """Engine with an empty store; call load() to read the datasets."""
        settings = settings or get_settings()
        store = PolygonStore(
            spatial_index_threshold_mb=settings.spatial_index_threshold_mb,
            spatial_index_feature_cache=settings.spatial_index_feature_cache,
        )
        return cls(store, settings)

    @classmethod
    def from_store(cls, store: PolygonStore, settings: Optional[RoutingSettings] = None) -> "RouteEngine":
        return cls(store, settings)

    @property
    def ready(self) -> bool:
        """True once datasets are loaded and at least one is non-empty."""
        return self.store.loaded and self.store.has_data

    def load(self, data_dir: Optional[str] = None) -> bool:
        """Load polygon datasets (once). Returns True if any water data is available."""
        return self.store.load(data_dir or self.settings.data_dir)

    def classify(self, lat: float, lon: float) -> WaterType:
        point = validate_coordinates(lat, lon)
        return self.classifier.classify(point.lat, point.lon)

    def is_water(self, lat: float, lon: float) -> bool:
        return self.classify(lat, lon).navigable

    def check_route(
        self,
        start_lat: float,
        start_lon: float,
        end_lat: float,
        end_lon: float,
        collect_all: bool = False,
    ) -> SegmentCheck:
        """Check the direct line only (no search). Stops at the first land sample unless collect_all."""
        start = validate_coordinates(start_lat, start_lon, "start")
        end = validate_coordinates(end_lat, end_lon, "end")
        return self.checker.check_segment(start, end, collect_all=collect_all)

    def find_route(
        self,
        start_lat: float,
        start_lon: float,
        end_lat: float,
        end_lon: float,
        max_iterations: Optional[int] = None,
    ) -> RouteResult:
        """
        Compute a water-only route.

        Raises:
            InvalidCoordinateError: If either endpoint is invalid

        Routing failures never raise; they come back as success=False with
        the direct line as payload.
        """
        start = validate_coordinates(start_lat, start_lon, "start")
        end = validate_coordinates(end_lat, end_lon, "end")

        if not self.ready:
            logger.warning("Route requested without navigation data loaded")
            return RouteResult.direct(
                start, end, success=False, failure_reason=FailureReason.NO_NAVIGATION_DATA
            )

        return self.pathfinder.find_route(start, end, max_iterations=max_iterations)

    def water_grid(
        self,
        min_lat: float,
        max_lat: float,
        min_lon: float,
        max_lon: float,
        grid_size_deg: float = DEFAULT_GRID_SIZE_DEG,
        max_points: int = MAX_GRID_POINTS,
    ) -> WaterGrid:
        validate_coordinates(min_lat, min_lon, "min")
        validate_coordinates(max_lat, max_lon, "max")
        return self.classifier.water_grid(
            min_lat, max_lat, min_lon, max_lon, grid_size_deg=grid_size_deg, max_points=max_points
        )

    def cache_stats(self) -> Dict[str, Any]:
        return self.cache.get_stats()

    def clear_cache(self) -> None:
        self.cache.clear()

    def status(self) -> Dict[str, Any]:
        """Engine status for health checks and debug endpoints."""
        return {
            "loaded": self.store.loaded,
            "has_data": self.store.has_data,
            "uses_spatial_index": self.store.uses_spatial_index,
            "data": self.store.summary(),
            "cache": self.cache_stats(),
            "grid_resolutions_deg": list(self.pathfinder.resolutions),
            "max_iterations": self.pathfinder.max_iterations,
        }

    def close(self) -> None:
        self.store.close()
        self.cache.clear()


def build_engine(settings: Optional[RoutingSettings] = None) -> RouteEngine:
    """Create an engine and load its datasets (worker process initializer)."""
    engine = RouteEngine.from_settings(settings)
    engine.load()
    return engine


def direct_route(start_lat: float, start_lon: float, end_lat: float, end_lon: float, **kwargs) -> RouteResult:
    """Unchecked two-point route between validated endpoints."""
    start = validate_coordinates(start_lat, start_lon, "start")
    end = validate_coordinates(end_lat, end_lon, "end")
    return RouteResult.direct(start, end, **kwargs)

