"""
Rate limiting configuration and utilities.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request
from fastapi.responses import JSONResponse
import logging

from portal.config import settings

logger = logging.getLogger(__name__)

# Use Redis if explicitly configured, otherwise fallback to memory
storage_uri = settings.REDIS_URL or "memory://"

if not settings.REDIS_URL:
    logger.warning("REDIS_URL not set using memory storage for rate limiting")

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
    storage_uri=storage_uri,
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Handle rate limit exceeded errors."""
    logger.warning(
        f"Rate limit exceeded for {get_remote_address(request)}",
        extra={
            "path": request.url.path,
            "method": request.method,
            "ip": get_remote_address(request)
        }
    )

    return JSONResponse(
        status_code=429,
        content={
            "error_code": "RATE_LIMIT_EXCEEDED",
            "message": "Too many requests. Please try again later.",
            "details": {
                "limit": str(exc.detail)
            }
        }
    )


AUTH_RATE_LIMIT = settings.RATE_LIMIT_AUTH
