"""
API v1 router - versioned API endpoints.
"""
from fastapi import APIRouter
from portal.config import settings
from portal.routers import (
    auth,
    clients,
    agents,
    chat,
    websocket
)

# Create v1 API router
api_v1_router = APIRouter(prefix=settings.API_PREFIX)

# Include all routers
api_v1_router.include_router(auth.router)
api_v1_router.include_router(clients.router)
api_v1_router.include_router(agents.router)
api_v1_router.include_router(chat.router)
api_v1_router.include_router(websocket.router)
