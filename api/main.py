"""
FastAPI backend for the Bosun navigation service.

Provides REST API endpoints for:
- Water-only route calculation
- Direct-line land checks
- Point water classification
- Debug overlays (classification grid, cache statistics)
"""

import dataclasses
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
import uvicorn

from api.config import Settings, settings as default_settings
from api.middleware import setup_middleware
from api.rate_limit import limiter
from api.routers import navigation, system
from api.state import ApplicationState
from bosun import __version__
from bosun.config import get_settings as get_routing_settings

# Access logs are JSON lines; engine logs stay plain text
logging.basicConfig(
    level=getattr(logging, default_settings.log_level.upper(), logging.INFO),
    format="%(message)s",
)
logger = logging.getLogger(__name__)


# =============================================================================
# Application Factory
# =============================================================================

def create_app(
    settings: Optional[Settings] = None,
    state: Optional[ApplicationState] = None,
) -> FastAPI:
    """
    Application factory for the Bosun API.

    Args:
        settings: API settings (defaults to environment)
        state: Pre-built application state; when given, its engine is used
            as-is and only loaded if not already loaded

    Returns:
        FastAPI: Configured application instance
    """
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(application: FastAPI):
        app_state = state
        if app_state is None:
            routing_settings = get_routing_settings()
            if settings.data_dir:
                routing_settings = dataclasses.replace(routing_settings, data_dir=settings.data_dir)
            app_state = ApplicationState.from_settings(
                routing_settings,
                worker_mode=settings.route_worker_mode,
                worker_count=settings.route_workers,
            )
        application.state.bosun = app_state

        if settings.load_data_on_startup:
            await app_state.load_navigation_data(settings.data_dir)
        logger.info(f"Bosun API {__version__} started")
        try:
            yield
        finally:
            app_state.shutdown()
            logger.info("Bosun API stopped")

    application = FastAPI(
        title="Bosun Navigation API",
        description="Water-only route calculation over ocean and lake polygon data.",
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
        lifespan=lifespan,
    )

    setup_middleware(application, debug=settings.debug)

    # CORS middleware - use configured origins only (NO WILDCARDS)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=settings.cors_credentials,
        allow_methods=[m.strip() for m in settings.cors_methods.split(",")],
        allow_headers=[h.strip() for h in settings.cors_headers.split(",")],
    )

    application.state.limiter = limiter

    @application.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        return JSONResponse(
            status_code=429,
            content={
                "error": "Rate limit exceeded",
                "detail": str(exc.detail),
                "retry_after": getattr(exc, 'retry_after', 60),
            },
            headers={"Retry-After": str(getattr(exc, 'retry_after', 60))},
        )

    @application.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"Validation error on {request.method} {request.url.path}: {exc.errors()}")
        return JSONResponse(status_code=422, content={"detail": jsonable_errors(exc)})

    application.include_router(system.router)
    application.include_router(navigation.router)

    return application


def jsonable_errors(exc: RequestValidationError):
    """Validation errors without the raw input objects (may not be JSON-safe)."""
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]


# Create the application
app = create_app()


# ============================================================================
# Run Server
# ============================================================================

if __name__ == "__main__":
    uvicorn.run(
        "api.main:app",
        host=default_settings.api_host,
        port=default_settings.api_port,
        reload=default_settings.is_development,
        log_level=default_settings.log_level,
    )
