"""
Rate limiting for the Bosun API using SlowAPI.

Counters live in process memory by default (RATE_LIMIT_STORAGE_URI);
route computation is the expensive call this protects.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address
from fastapi import Request
import logging

from api.config import settings

logger = logging.getLogger(__name__)


def get_api_key_identifier(request: Request) -> str:
    """
    Get identifier for rate limiting.
    Uses API key if present, otherwise falls back to IP address.

    Args:
        request: FastAPI request object

    Returns:
        str: Identifier for rate limiting
    """
    api_key = request.headers.get(settings.api_key_header)
    if api_key:
        # Use first 8 characters of API key for identification
        return f"key:{api_key[:8]}"

    return f"ip:{get_remote_address(request)}"


limiter = Limiter(
    key_func=get_api_key_identifier,
    enabled=settings.rate_limit_enabled,
    storage_uri=settings.rate_limit_storage_uri,
    strategy="fixed-window"
)


def get_rate_limit_string() -> str:
    """
    Get rate limit string for use with @limiter.limit() decorator.

    Returns:
        str: Rate limit string (e.g., "60/minute")
    """
    return f"{settings.rate_limit_per_minute}/minute"


def get_rate_limit_status() -> dict:
    """Rate limit configuration for the debug endpoint."""
    if not settings.rate_limit_enabled:
        return {
            "enabled": False,
            "message": "Rate limiting is disabled"
        }
    return {
        "enabled": True,
        "per_minute": settings.rate_limit_per_minute,
        "storage": settings.rate_limit_storage_uri.split("://", 1)[0],
    }
