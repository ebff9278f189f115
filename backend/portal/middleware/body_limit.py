from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from portal.config import settings


def _too_large() -> JSONResponse:
    return JSONResponse(
        status_code=413,
        content={
            "error_code": "PAYLOAD_TOO_LARGE",
            "message": "Payload too large",
            "details": {},
        },
    )


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, max_bytes: int = None):
        super().__init__(app)
        self.max_bytes = max_bytes or settings.MAX_BODY_SIZE

    async def dispatch(self, request: Request, call_next):
        content_length = request.headers.get("content-length")
        if content_length:
            try:
                if int(content_length) > self.max_bytes:
                    return _too_large()
            except ValueError:
                pass
        elif request.method in ("POST", "PUT", "PATCH"):
            total = 0
            body = bytearray()
            async for chunk in request.stream():
                total += len(chunk)
                if total > self.max_bytes:
                    return _too_large()
                body.extend(chunk)
            request._body = bytes(body)
        return await call_next(request)
