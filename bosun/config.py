"""
Bosun Configuration Module.

Centralized configuration for the route engine using environment variables.
Supports .env files for local development.

Usage:
    from bosun.config import settings

    print(settings.grid_resolutions_deg)
    print(settings.max_iterations)
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

# Load .env file if present
env_path = Path(__file__).parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)

DEFAULT_GRID_RESOLUTIONS = "0.001,0.0005,0.0002,0.0001"


def get_bool(key: str, default: bool = False) -> bool:
    """Get boolean from environment variable."""
    value = os.getenv(key, str(default)).lower()
    return value in ("true", "1", "yes", "on")


def get_float(key: str, default: float) -> float:
    """Get float from environment variable."""
    try:
        return float(os.getenv(key, str(default)))
    except (ValueError, TypeError):
        return default


def get_int(key: str, default: int) -> int:
    """Get int from environment variable."""
    try:
        return int(os.getenv(key, str(default)))
    except (ValueError, TypeError):
        return default


def get_list(key: str, default: str = "") -> List[str]:
    """Get list from comma-separated environment variable."""
    value = os.getenv(key, default)
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def get_float_list(key: str, default: str) -> List[float]:
    """Get list of floats from comma-separated environment variable."""
    try:
        return [float(item) for item in get_list(key, default)]
    except ValueError:
        return [float(item) for item in default.split(",")]


@dataclass
class RoutingSettings:
    """Route engine settings loaded from environment."""

    # Data
    data_dir: str = field(default_factory=lambda: os.getenv("BOSUN_DATA_DIR", "data"))
    spatial_index_threshold_mb: float = field(
        default_factory=lambda: get_float("SPATIAL_INDEX_THRESHOLD_MB", 100.0)
    )
    spatial_index_feature_cache: int = field(
        default_factory=lambda: get_int("SPATIAL_INDEX_FEATURE_CACHE", 256)
    )

    # Classification cache (~11m at 4 decimals)
    cache_max_size: int = field(default_factory=lambda: get_int("WATER_CACHE_SIZE", 100_000))
    cache_precision: int = field(default_factory=lambda: get_int("WATER_CACHE_PRECISION", 4))

    # Segment sampling
    segment_sample_m: float = field(default_factory=lambda: get_float("ROUTE_SEGMENT_SAMPLE_M", 11.0))
    simplify_sample_m: float = field(default_factory=lambda: get_float("ROUTE_SIMPLIFY_SAMPLE_M", 15.0))

    # Grid search
    grid_resolutions_deg: List[float] = field(
        default_factory=lambda: get_float_list("ROUTE_GRID_RESOLUTIONS", DEFAULT_GRID_RESOLUTIONS)
    )
    max_iterations: int = field(default_factory=lambda: get_int("ROUTE_MAX_ITERATIONS", 50_000))
    refine_resolution_deg: float = field(
        default_factory=lambda: get_float("ROUTE_REFINE_RESOLUTION", 0.0001)
    )
    refine_max_iterations: int = field(
        default_factory=lambda: get_int("ROUTE_REFINE_MAX_ITERATIONS", 10_000)
    )
    snap_radius_cells: int = field(default_factory=lambda: get_int("ROUTE_SNAP_RADIUS", 5))

    # Logging
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_format: str = field(
        default_factory=lambda: os.getenv(
            "LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
    )

    def __post_init__(self):
        """Validate settings after initialization."""
        resolutions = [r for r in self.grid_resolutions_deg if r > 0]
        if not resolutions:
            logging.warning(
                f"Grid resolutions {self.grid_resolutions_deg} invalid, "
                f"using {DEFAULT_GRID_RESOLUTIONS}"
            )
            resolutions = [float(r) for r in DEFAULT_GRID_RESOLUTIONS.split(",")]
        # Coarse to fine
        self.grid_resolutions_deg = sorted(set(resolutions), reverse=True)

        if self.refine_resolution_deg <= 0:
            logging.warning(
                f"Refine resolution {self.refine_resolution_deg} invalid, using 0.0001"
            )
            self.refine_resolution_deg = 0.0001

        if self.max_iterations < 1:
            logging.warning(f"max_iterations {self.max_iterations} invalid, using 50000")
            self.max_iterations = 50_000

        if self.refine_max_iterations < 1:
            logging.warning(
                f"refine_max_iterations {self.refine_max_iterations} invalid, using 10000"
            )
            self.refine_max_iterations = 10_000

        if self.cache_max_size < 1:
            logging.warning(f"Cache size {self.cache_max_size} invalid, using 100000")
            self.cache_max_size = 100_000

        if self.segment_sample_m <= 0 or self.simplify_sample_m <= 0:
            logging.warning("Sample intervals must be positive, using 11m / 15m")
            self.segment_sample_m = 11.0
            self.simplify_sample_m = 15.0

    def configure_logging(self, level: Optional[str] = None):
        """Configure logging based on settings."""
        level_name = (level or self.log_level).upper()
        logging.basicConfig(level=getattr(logging, level_name, logging.INFO), format=self.log_format)


# Singleton instance
settings = RoutingSettings()


# Convenience function for testing
def get_settings() -> RoutingSettings:
    """Get the settings instance (useful for dependency injection)."""
    return settings
