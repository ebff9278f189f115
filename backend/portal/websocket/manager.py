"""
WebSocket connection registry for real-time delivery.
"""
import asyncio
import logging
from typing import Any, Dict, Set

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionManager:
    """
    Map client ids to their live WebSocket connections.

    A client may hold several connections (tabs, devices). All registry
    mutations happen under one lock; broadcasts iterate a snapshot taken under
    that lock and send outside it, so a slow socket never holds up
    register/unregister or the other sockets of the same client.
    """

    def __init__(self, send_timeout: float = 5.0):
        # Active connections: {client_id: {websocket1, websocket2, ...}}
        self.active_connections: Dict[int, Set[WebSocket]] = {}
        # Reverse index so a closing socket can leave every set it joined
        self._memberships: Dict[WebSocket, Set[int]] = {}
        self._lock = asyncio.Lock()
        self.send_timeout = send_timeout

    async def register(self, websocket: WebSocket, client_id: int) -> None:
        """Add a connection under a client id. Registering twice is a no-op."""
        async with self._lock:
            self.active_connections.setdefault(client_id, set()).add(websocket)
            self._memberships.setdefault(websocket, set()).add(client_id)
        logger.info(f"WebSocket registered for client: {client_id}", extra={"client_id": client_id})

    async def unregister(self, websocket: WebSocket) -> None:
        """Remove a connection from every client set it belongs to."""
        async with self._lock:
            client_ids = self._memberships.pop(websocket, set())
            for client_id in client_ids:
                connections = self.active_connections.get(client_id)
                if connections is None:
                    continue
                connections.discard(websocket)
                # Clean up if no more connections
                if not connections:
                    del self.active_connections[client_id]
        for client_id in client_ids:
            logger.info(f"WebSocket unregistered for client: {client_id}", extra={"client_id": client_id})

    async def deliver(self, client_id: int, event: Dict[str, Any]) -> int:
        """
        Send an event to every connection registered for a client.

        Returns:
            Number of connections that accepted the event. Zero means the push
            was dropped; nothing is buffered.
        """
        async with self._lock:
            targets = list(self.active_connections.get(client_id, ()))

        if not targets:
            logger.info(f"No live connection for client {client_id}, event dropped", extra={"client_id": client_id})
            return 0

        results = await asyncio.gather(*(self._send(ws, event) for ws in targets))

        for websocket, ok in zip(targets, results):
            if not ok:
                await self.unregister(websocket)
        return sum(1 for ok in results if ok)

    async def _send(self, websocket: WebSocket, event: Dict[str, Any]) -> bool:
        try:
            await asyncio.wait_for(websocket.send_json(event), timeout=self.send_timeout)
            return True
        except Exception as e:
            logger.warning(f"Dropping WebSocket after failed send: {e!r}")
            return False

    async def close_all(self) -> None:
        """Close every connection; used at shutdown."""
        async with self._lock:
            sockets = list(self._memberships.keys())
            self._memberships.clear()
            self.active_connections.clear()
        for websocket in sockets:
            try:
                await websocket.close(code=1001)
            except Exception as e:
                logger.debug(f"Ignoring close error at shutdown: {e!r}")

    def get_connection_count(self) -> int:
        """Get total number of active connections."""
        return sum(len(connections) for connections in self.active_connections.values())

    def get_client_count(self) -> int:
        """Get number of connected clients."""
        return len(self.active_connections)

    def is_client_connected(self, client_id: int) -> bool:
        return bool(self.active_connections.get(client_id))
