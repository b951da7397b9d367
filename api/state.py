"""
Application state for the Bosun API.

One ApplicationState is created per FastAPI app (in the lifespan) and
stored on ``app.state``; routers reach it through the ``get_app_state``
dependency rather than a module-level singleton, so each app (and each
test client) owns an isolated engine, cache and worker.
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import Request

from bosun.config import RoutingSettings
from bosun.routing.engine import RouteEngine
from bosun.routing.worker import RouteWorker

logger = logging.getLogger(__name__)


class ApplicationState:
    """
    Shared state for one application instance.

    Holds the route engine (polygon store + classification cache) and the
    route worker that runs searches off the event loop.
    """

    def __init__(
        self,
        engine: RouteEngine,
        worker_mode: str = "thread",
        worker_count: int = 1,
    ):
        self.engine = engine
        self.worker = RouteWorker(engine, mode=worker_mode, max_workers=worker_count)
        self.data_loading = False
        self._startup_time = datetime.now(timezone.utc)

        logger.info("Application state initialized")

    @classmethod
    def from_settings(
        cls,
        routing_settings: Optional[RoutingSettings] = None,
        worker_mode: str = "thread",
        worker_count: int = 1,
    ) -> "ApplicationState":
        return cls(RouteEngine.from_settings(routing_settings), worker_mode, worker_count)

    async def load_navigation_data(self, data_dir: Optional[str] = None) -> bool:
        """
        Load polygon datasets without blocking the event loop, then start
        the route worker.
        """
        self.data_loading = True
        try:
            has_data = await asyncio.to_thread(self.engine.load, data_dir)
        finally:
            self.data_loading = False

        self.worker.start()
        if not has_data:
            logger.warning("Navigation data unavailable; route requests will fail")
        return has_data

    def shutdown(self) -> None:
        self.worker.shutdown()
        self.engine.close()

    @property
    def uptime_seconds(self) -> float:
        """Get application uptime in seconds."""
        return (datetime.now(timezone.utc) - self._startup_time).total_seconds()


def get_app_state(request: Request) -> ApplicationState:
    """
    FastAPI dependency returning the state attached to the running app.

    Returns:
        ApplicationState: The state created in the app lifespan
    """
    return request.app.state.bosun
