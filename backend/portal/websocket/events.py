"""
WebSocket event types and builders.
"""
from enum import Enum
from typing import Dict, Any, Optional
from datetime import datetime


class EventType(str, Enum):
    """WebSocket event types."""
    # Client -> server
    JOIN_CLIENT_ROOM = "join_client_room"
    PING = "ping"

    # Server -> client
    JOINED = "joined"
    AGENT_RESPONSE = "agent_response"
    PONG = "pong"
    ERROR = "error"


class WebSocketEvent:
    """WebSocket event builder."""

    @staticmethod
    def create_event(event_type: EventType, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a WebSocket event.

        Args:
            event_type: Type of event
            data: Event data

        Returns:
            Event dictionary ``{"type", "data", "timestamp"}``
        """
        return {
            "type": event_type.value,
            "data": data,
            "timestamp": datetime.utcnow().isoformat()
        }

    @staticmethod
    def agent_response(message_id: int, agent_id: int, response: str) -> Dict[str, Any]:
        """Resolved chat message, pushed to the owning client."""
        return WebSocketEvent.create_event(
            EventType.AGENT_RESPONSE,
            {
                "messageId": message_id,
                "agentId": agent_id,
                "response": response
            }
        )

    @staticmethod
    def joined(client_id: int) -> Dict[str, Any]:
        return WebSocketEvent.create_event(EventType.JOINED, {"client_id": client_id})

    @staticmethod
    def pong(timestamp: Optional[Any] = None) -> Dict[str, Any]:
        return WebSocketEvent.create_event(EventType.PONG, {"timestamp": timestamp})

    @staticmethod
    def error(message: str) -> Dict[str, Any]:
        return WebSocketEvent.create_event(EventType.ERROR, {"message": message})
