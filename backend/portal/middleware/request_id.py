"""
Request ID middleware for log correlation.
"""
import uuid
import time
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
import logging

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Tag every request with an ID (taken from the incoming header when present)
    and log its start, completion and duration.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id

        start = time.time()
        logger.info(
            f"{request.method} {request.url.path} started",
            extra={"request_id": request_id, "status": "started"},
        )

        try:
            response: Response = await call_next(request)
        except Exception as e:
            duration_ms = int((time.time() - start) * 1000)
            logger.error(
                f"{request.method} {request.url.path} failed: {str(e)}",
                extra={"request_id": request_id, "duration_ms": duration_ms},
                exc_info=True,
            )
            raise

        response.headers[REQUEST_ID_HEADER] = request_id
        duration_ms = int((time.time() - start) * 1000)
        extra = {
            "request_id": request_id,
            "status": response.status_code,
            "duration_ms": duration_ms,
        }
        client_id = getattr(request.state, "client_id", None)
        if client_id is not None:
            extra["client_id"] = client_id
        logger.info(f"{request.method} {request.url.path} completed", extra=extra)
        return response


def get_request_id(request: Request) -> str:
    """Request ID assigned by the middleware, or "unknown" outside a request."""
    return getattr(request.state, "request_id", "unknown")
