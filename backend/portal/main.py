from fastapi import FastAPI, Depends, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy import text
from sqlalchemy.orm import Session

from portal.config import settings
from portal.api.v1.router import api_v1_router
from portal.db import Base, SessionLocal, engine, get_db
from portal.services.client_service import seed_admin
from portal.services.relay_service import RelayCoordinator
from portal.services.webhook_forwarder import WebhookForwarder
from portal.websocket.manager import ConnectionManager

# Import error handling and rate limiting
from portal.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    general_exception_handler
)
from portal.rate_limit import limiter, rate_limit_exceeded_handler

import os
import logging
import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration
from alembic import command
from alembic.config import Config
from alembic.script import ScriptDirectory

from portal.middleware.request_id import RequestIDMiddleware
from portal.middleware.body_limit import BodySizeLimitMiddleware
from portal.middleware.security_headers import SecurityHeadersMiddleware
from portal.utils.logging import configure_logging

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

# Sentry integration (optional)
if settings.SENTRY_DSN:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        integrations=[
            FastApiIntegration(),
            SqlalchemyIntegration(),
        ],
        traces_sample_rate=0.1,  # 10% of transactions for performance monitoring
        environment=settings.ENVIRONMENT,
    )
    logger.info("Sentry error tracking initialized")

APP_VERSION = "1.0.0"


def _alembic_config() -> Config:
    # backend/portal/main.py -> backend/
    backend_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    alembic_cfg = Config(os.path.join(backend_dir, "alembic.ini"))
    alembic_cfg.set_main_option("script_location", os.path.join(backend_dir, "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", settings.database_url_fixed)
    alembic_cfg.attributes["configure_logger"] = False
    return alembic_cfg


def run_migrations():
    """Run Alembic migrations up to head"""
    logger.info("Running DB migrations...")
    command.upgrade(_alembic_config(), "head")
    logger.info("DB migrations completed successfully")


def init_db():
    """Create the schema, through Alembic when AUTO_MIGRATE is set"""
    if settings.AUTO_MIGRATE:
        run_migrations()
    else:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables verified/created")


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="Client portal relaying chat messages to externally hosted AI agents",
    version=APP_VERSION
)

# Add rate limiting state
app.state.limiter = limiter

# Register exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
app.add_exception_handler(Exception, general_exception_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    max_age=3600,
)

app.add_middleware(SlowAPIMiddleware)
app.add_middleware(RequestIDMiddleware)
app.add_middleware(BodySizeLimitMiddleware, max_bytes=settings.MAX_BODY_SIZE)
app.add_middleware(SecurityHeadersMiddleware)


# Startup event
@app.on_event("startup")
async def startup_event():
    """Initialize application on startup"""
    logger.info(f"Starting {settings.APP_NAME}...")

    init_db()

    try:
        with SessionLocal() as db:
            seed_admin(db, settings.ADMIN_USERNAME, settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD)
    except Exception as e:
        logger.error(f"Failed to seed admin: {e}")

    connections = ConnectionManager(send_timeout=settings.WS_SEND_TIMEOUT_SECONDS)
    forwarder = WebhookForwarder(
        timeout=settings.WEBHOOK_TIMEOUT_SECONDS,
        max_attempts=settings.WEBHOOK_MAX_ATTEMPTS,
    )
    app.state.connection_manager = connections
    app.state.relay = RelayCoordinator(forwarder, connections)
    logger.info("Relay and realtime channel ready")


@app.on_event("shutdown")
async def shutdown_event():
    manager = getattr(app.state, "connection_manager", None)
    if manager is not None:
        await manager.close_all()
    logger.info(f"{settings.APP_NAME} stopped")


# Register routers
app.include_router(api_v1_router)


def _check_migrations() -> bool:
    try:
        script = ScriptDirectory.from_config(_alembic_config())
        heads = set(script.get_heads())
        with SessionLocal() as db:
            current = db.execute(text("SELECT version_num FROM alembic_version")).fetchone()
        if not current:
            return False
        return current[0] in heads
    except Exception:
        return False


@app.get("/version")
def get_version():
    return {
        "version": APP_VERSION,
        "commit": os.getenv("GIT_COMMIT") or "unknown",
        "build_timestamp": os.getenv("BUILD_TIMESTAMP") or "unknown",
    }


@app.get("/healthz")
def healthz():
    return {"status": "ok"}


@app.get("/readyz")
def readyz(db: Session = Depends(get_db)):
    checks = {"database": False}
    try:
        db.execute(text("SELECT 1"))
        checks["database"] = True
    except Exception:
        checks["database"] = False
    if settings.AUTO_MIGRATE:
        checks["migrations"] = _check_migrations()
    if all(checks.values()):
        return {"status": "ok", "checks": checks}
    raise HTTPException(status_code=503, detail={"status": "not_ready", "checks": checks})


@app.get("/")
def read_root():
    """Root endpoint"""
    return {
        "message": f"{settings.APP_NAME} API",
        "version": APP_VERSION,
        "status": "running"
    }


@app.get("/health")
def health_check(db: Session = Depends(get_db)):
    """Health check with database probe"""
    health_status = {"status": "ok", "checks": {}}

    try:
        db.execute(text("SELECT 1"))
        health_status["checks"]["database"] = "ok"
    except Exception as e:
        health_status["checks"]["database"] = "error"
        health_status["status"] = "degraded"
        logger.error(f"Database health check failed: {e}")

    manager = getattr(app.state, "connection_manager", None)
    health_status["checks"]["websocket_connections"] = manager.get_connection_count() if manager else 0
    return health_status
