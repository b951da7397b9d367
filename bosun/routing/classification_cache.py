"""
Thread-safe bounded cache for water classifications.

Keys are coordinates rounded to a fixed precision. Eviction is
insertion-order (oldest first): reads do not refresh an entry.
"""
import logging
import threading
from collections import OrderedDict
from typing import Any, Dict, Optional, Tuple

from bosun.data.geometry import WaterType

logger = logging.getLogger(__name__)

CacheKey = Tuple[float, float]


class ClassificationCache:
    """
    Bounded (rounded_lat, rounded_lon) -> WaterType map.

    Usage:
        cache = ClassificationCache(max_size=100_000)
        cache.set((51.5, -0.1), WaterType.LAND)
        cache.get((51.5, -0.1))
    """

    def __init__(self, max_size: int = 100_000, name: str = "water"):
        """
        Initialize cache.

        Args:
            max_size: Maximum number of entries before oldest-first eviction
            name: Cache name for logging/metrics
        """
        self.max_size = max(1, max_size)
        self.name = name

        self._cache: "OrderedDict[CacheKey, WaterType]" = OrderedDict()
        self._lock = threading.Lock()

        # Metrics
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def get(self, key: CacheKey) -> Optional[WaterType]:
        with self._lock:
            value = self._cache.get(key)
            if value is None:
                self._misses += 1
            else:
                self._hits += 1
            return value

    def set(self, key: CacheKey, value: WaterType) -> None:
        with self._lock:
            if key in self._cache:
                self._cache[key] = value
                return
            while len(self._cache) >= self.max_size:
                self._cache.popitem(last=False)
                self._evictions += 1
            self._cache[key] = value

    def clear(self) -> int:
        """
        Clear all entries from cache.

        Returns:
            Number of entries cleared
        """
        with self._lock:
            count = len(self._cache)
            self._cache.clear()
            logger.info(f"Cache '{self.name}' cleared: {count} entries removed")
            return count

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            total_requests = self._hits + self._misses
            hit_rate = self._hits / total_requests if total_requests > 0 else 0.0

            return {
                'name': self.name,
                'size': len(self._cache),
                'max_size': self.max_size,
                'hits': self._hits,
                'misses': self._misses,
                'hit_rate': round(hit_rate, 4),
                'evictions': self._evictions,
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def __contains__(self, key: CacheKey) -> bool:
        with self._lock:
            return key in self._cache
