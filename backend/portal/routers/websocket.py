"""
WebSocket router for pushed agent responses.
Token must be provided (query param, cookie, or Bearer header). A connection only
receives events after it joins the room of the client its token belongs to.
"""
from fastapi import APIRouter, WebSocket, WebSocketDisconnect, Query, Cookie, Depends
from typing import Optional
import logging
import json

from portal.deps import get_current_admin, get_connection_manager, principal_from_token
from portal.models import Admin, Role
from portal.schemas import ConnectionStats
from portal.websocket.events import WebSocketEvent, EventType
from portal.websocket.manager import ConnectionManager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ws", tags=["websocket"])


def _parse_client_id(message: dict) -> Optional[int]:
    raw = message.get("client_id", message.get("clientId"))
    if raw is None and isinstance(message.get("data"), dict):
        raw = message["data"].get("client_id")
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


@router.websocket("")
async def websocket_endpoint(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
    access_token: Optional[str] = Cookie(None)
):
    """
    Realtime channel for agent responses.

    Client events: ``join_client_room`` with the caller's own client id, and ``ping``.
    Server events: ``joined``, ``pong``, ``error`` and ``agent_response``.
    """
    final_token = token or access_token
    if not final_token:
        auth_header = websocket.headers.get("Authorization")
        if auth_header and auth_header.startswith("Bearer "):
            final_token = auth_header.split(" ", 1)[1]

    principal = principal_from_token(final_token)
    if principal is None or principal.role != Role.CLIENT:
        logger.warning("WS connection rejected: missing or invalid client token")
        await websocket.close(code=1008, reason="Invalid authentication token")
        return

    manager: ConnectionManager = websocket.app.state.connection_manager
    await websocket.accept()

    try:
        while True:
            data = await websocket.receive_text()
            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                logger.info(f"Invalid JSON received from client {principal.id}", extra={"client_id": principal.id})
                await websocket.send_json(WebSocketEvent.error("Invalid JSON"))
                continue
            if not isinstance(message, dict):
                await websocket.send_json(WebSocketEvent.error("Event must be a JSON object"))
                continue

            event_type = message.get("type")
            if event_type == EventType.JOIN_CLIENT_ROOM.value:
                client_id = _parse_client_id(message)
                if client_id != principal.id:
                    logger.warning(
                        f"Client {principal.id} tried to join room {client_id}",
                        extra={"client_id": principal.id},
                    )
                    await websocket.send_json(WebSocketEvent.error("Cannot join another client's room"))
                    continue
                await manager.register(websocket, client_id)
                await websocket.send_json(WebSocketEvent.joined(client_id))

            elif event_type == EventType.PING.value:
                await websocket.send_json(WebSocketEvent.pong(message.get("timestamp")))

            else:
                await websocket.send_json(WebSocketEvent.error(f"Unknown event type: {event_type}"))

    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected for client: {principal.id}", extra={"client_id": principal.id})
    finally:
        await manager.unregister(websocket)


@router.get("/stats", response_model=ConnectionStats)
async def get_websocket_stats(
    current_admin: Admin = Depends(get_current_admin),
    manager: ConnectionManager = Depends(get_connection_manager),
):
    """Get WebSocket connection statistics (Admin only)."""
    return ConnectionStats(
        total_connections=manager.get_connection_count(),
        connected_clients=manager.get_client_count(),
    )
