from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from portal.config import settings


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "SAMEORIGIN")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        # Swagger UI pulls its assets from a CDN
        if request.url.path in ("/docs", "/redoc"):
            return response
        connect_sources = " ".join(["'self'"] + settings.cors_origins_list)
        response.headers.setdefault(
            "Content-Security-Policy",
            "default-src 'self'; img-src 'self' data: https:; "
            f"connect-src {connect_sources} ws: wss:; "
            "script-src 'self'; style-src 'self' 'unsafe-inline'; frame-ancestors 'self'",
        )
        if settings.is_production:
            response.headers.setdefault("Strict-Transport-Security", "max-age=15552000; includeSubDomains")
        return response
