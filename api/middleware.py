"""
Request middleware for the Bosun API.

Provides:
- Request ID tracking (X-Request-ID in and out)
- Structured JSON access logs with timing
- Sanitized 500 responses for unhandled errors
"""
import time
import uuid
import logging
import json
from typing import Callable, Optional
from contextvars import ContextVar
from datetime import datetime, timezone

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response, JSONResponse
from fastapi import FastAPI

request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


def get_request_id() -> Optional[str]:
    """Get the current request ID from context."""
    return request_id_ctx.get()


class StructuredLogger:
    """
    JSON-lines logger carrying the current request ID.

    Every record is one JSON object so route timings can be aggregated
    without parsing free text.
    """

    def __init__(self, name: str, service: str = "bosun-api"):
        self.logger = logging.getLogger(name)
        self.service = service

    def _log(self, level: str, message: str, **kwargs):
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level,
            "message": message,
            "service": self.service,
            "request_id": get_request_id(),
            **kwargs
        }
        log_entry = {k: v for k, v in log_entry.items() if v is not None}
        getattr(self.logger, level.lower())(json.dumps(log_entry, default=str))

    def info(self, message: str, **kwargs):
        self._log("INFO", message, **kwargs)

    def warning(self, message: str, **kwargs):
        self._log("WARNING", message, **kwargs)

    def error(self, message: str, **kwargs):
        self._log("ERROR", message, **kwargs)

    def debug(self, message: str, **kwargs):
        self._log("DEBUG", message, **kwargs)


structured_logger = StructuredLogger("bosun.access")


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Assigns a request ID and logs each request with its duration.

    The ID is taken from an incoming X-Request-ID header when present so
    a caller can correlate its own logs, otherwise a UUID4 is generated.
    """

    HEADER_NAME = "X-Request-ID"

    # Health probes are too chatty to log
    EXCLUDED_PATHS = {"/api/health", "/health"}

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(self.HEADER_NAME) or str(uuid.uuid4())
        token = request_id_ctx.set(request_id)
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
            response.headers[self.HEADER_NAME] = request_id
            if request.url.path not in self.EXCLUDED_PATHS:
                structured_logger.info(
                    "Request completed",
                    method=request.method,
                    path=request.url.path,
                    query=str(request.query_params) if request.query_params else None,
                    status_code=response.status_code,
                    duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
                    client_ip=request.client.host if request.client else None,
                )
            return response
        finally:
            request_id_ctx.reset(token)


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Converts unhandled exceptions into a sanitized 500 with the request ID.

    Full details are only returned when debug is enabled.
    """

    def __init__(self, app, debug: bool = False):
        super().__init__(app)
        self.debug = debug

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            request_id = get_request_id()
            structured_logger.error(
                "Unhandled exception",
                error=str(e),
                error_type=type(e).__name__,
                path=request.url.path,
                method=request.method,
            )

            detail = str(e) if self.debug else "An internal error occurred. Quote the request ID when reporting it."
            return JSONResponse(
                status_code=500,
                content={
                    "error": "Internal Server Error",
                    "detail": detail,
                    "request_id": request_id,
                },
                headers={"X-Request-ID": request_id} if request_id else {},
            )


def setup_middleware(app: FastAPI, debug: bool = False):
    """
    Install request middleware.

    Middleware runs in reverse order of addition: the request context is
    added last so the error handler can read its request ID.
    """
    app.add_middleware(ErrorHandlingMiddleware, debug=debug)
    app.add_middleware(RequestContextMiddleware)
