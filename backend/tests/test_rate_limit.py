from fastapi import FastAPI, Request
from fastapi.testclient import TestClient
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from portal.rate_limit import rate_limit_exceeded_handler


def _limited_app(default_limits=None):
    # The shared limiter is disabled for the test run; build an enabled one
    limiter = Limiter(key_func=get_remote_address, default_limits=default_limits or [], storage_uri="memory://")
    app = FastAPI()
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    return app, limiter


def test_rate_limit_exceeded_returns_429():
    app, limiter = _limited_app()

    @app.post("/auth/login")
    @limiter.limit("1/minute")
    def limited(request: Request):
        return {"ok": True}

    client = TestClient(app)
    assert client.post("/auth/login").status_code == 200
    response = client.post("/auth/login")
    assert response.status_code == 429
    body = response.json()
    assert body["error_code"] == "RATE_LIMIT_EXCEEDED"


def test_global_default_limit_applies_to_every_route():
    app, limiter = _limited_app(default_limits=["2/minute"])
    app.add_middleware(SlowAPIMiddleware)

    @app.get("/agents")
    def agents():
        return []

    client = TestClient(app)
    assert client.get("/agents").status_code == 200
    assert client.get("/agents").status_code == 200
    assert client.get("/agents").status_code == 429
