"""Water classification and water-only route finding."""

from .classification_cache import ClassificationCache
from .engine import RouteEngine
from .geodesy import InvalidCoordinateError, haversine_nm, validate_coordinates
from .grid_search import GridSearch
from .models import FailureReason, RouteResult, SearchResult
from .path_validator import PathValidator
from .pathfinder import MultiResolutionPathfinder
from .segment_checker import SegmentCheck, SegmentChecker
from .water_classifier import WaterClassifier, WaterGrid
from .worker import RouteWorker

__all__ = [
    'ClassificationCache',
    'RouteEngine',
    'InvalidCoordinateError',
    'haversine_nm',
    'validate_coordinates',
    'GridSearch',
    'FailureReason',
    'RouteResult',
    'SearchResult',
    'PathValidator',
    'MultiResolutionPathfinder',
    'SegmentCheck',
    'SegmentChecker',
    'WaterClassifier',
    'WaterGrid',
    'RouteWorker',
]
