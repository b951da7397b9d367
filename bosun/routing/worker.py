"""
Off-loop route computation.

Route searches are CPU-bound and can take hundreds of milliseconds, so
they run on a dedicated bounded executor rather than the event loop that
serves telemetry and API traffic.

Modes:
- thread: a ThreadPoolExecutor sharing the already-loaded engine
- process: a ProcessPoolExecutor whose workers each build and load their
  own engine once (initializer), avoiding the GIL for long searches

While the worker is not ready (not started, data still loading, or shut
down) requests degrade to a direct two-point route flagged
``worker_unavailable`` instead of blocking.
"""

import asyncio
import logging
from concurrent.futures import Executor, ProcessPoolExecutor, ThreadPoolExecutor
from concurrent.futures.process import BrokenProcessPool
from typing import Optional

from bosun.config import RoutingSettings
from bosun.routing.engine import RouteEngine, build_engine, direct_route
from bosun.routing.models import FailureReason, RouteResult

logger = logging.getLogger(__name__)

WORKER_MODES = ("thread", "process")

# Engine owned by a worker process (process mode only)
_process_engine: Optional[RouteEngine] = None


def _init_process_engine(settings: RoutingSettings) -> None:
    global _process_engine
    settings.configure_logging()
    _process_engine = build_engine(settings)


def _process_find_route(start_lat, start_lon, end_lat, end_lon, max_iterations=None) -> RouteResult:
    if _process_engine is None:
        raise RuntimeError("Route worker process has no engine")
    return _process_engine.find_route(start_lat, start_lon, end_lat, end_lon, max_iterations)


class RouteWorker:
    """Bounded executor for route requests."""

    def __init__(
        self,
        engine: RouteEngine,
        mode: str = "thread",
        max_workers: int = 1,
    ):
        if mode not in WORKER_MODES:
            raise ValueError(f"Unknown route worker mode {mode!r}, expected one of {WORKER_MODES}")
        self.engine = engine
        self.mode = mode
        self.max_workers = max(1, max_workers)
        self._executor: Optional[Executor] = None

    def start(self) -> None:
        """Create the executor. Thread mode needs the engine's data loaded first."""
        if self._executor is not None:
            return
        if self.mode == "process":
            self._executor = ProcessPoolExecutor(
                max_workers=self.max_workers,
                initializer=_init_process_engine,
                initargs=(self.engine.settings,),
            )
        else:
            self._executor = ThreadPoolExecutor(
                max_workers=self.max_workers, thread_name_prefix="route-worker"
            )
        logger.info(f"Route worker started ({self.mode}, {self.max_workers} workers)")

    def is_ready(self) -> bool:
        """Started and the engine has finished loading (with or without data)."""
        return self._executor is not None and self.engine.store.loaded

    async def find_route(
        self,
        start_lat: float,
        start_lon: float,
        end_lat: float,
        end_lon: float,
        max_iterations: Optional[int] = None,
    ) -> RouteResult:
        """
        Compute a route off the event loop.

        Raises:
            InvalidCoordinateError: If either endpoint is invalid
        """
        executor = self._executor
        if executor is None or not self.is_ready():
            return self._degraded(start_lat, start_lon, end_lat, end_lon)

        if self.mode == "process":
            fn, args = _process_find_route, (start_lat, start_lon, end_lat, end_lon, max_iterations)
        else:
            fn, args = self.engine.find_route, (start_lat, start_lon, end_lat, end_lon, max_iterations)

        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(executor, fn, *args)
        except BrokenProcessPool as e:
            logger.error(f"Route worker pool broken: {e}")
            self._executor = None
            return self._degraded(start_lat, start_lon, end_lat, end_lon)

    def _degraded(self, start_lat, start_lon, end_lat, end_lon) -> RouteResult:
        logger.warning("Route worker unavailable, returning direct route")
        return direct_route(
            start_lat,
            start_lon,
            end_lat,
            end_lon,
            success=False,
            failure_reason=FailureReason.WORKER_UNAVAILABLE,
            worker_unavailable=True,
        )

    def shutdown(self, wait: bool = True) -> None:
        if self._executor is None:
            return
        executor, self._executor = self._executor, None
        executor.shutdown(wait=wait, cancel_futures=True)
        logger.info("Route worker stopped")
