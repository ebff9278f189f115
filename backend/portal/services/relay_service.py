"""
Chat relay: persist a client's message, forward it to the agent's webhook,
store the reply and push it to the client's live connections.

submit() runs inside the request. relay() is the continuation, scheduled as
a background task so the HTTP response never waits on the webhook. Within one
message the steps are strictly ordered: create, forward, resolve, deliver.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from portal.db import SessionLocal
from portal.exceptions import ValidationError
from portal.models import Client, MessageStatus
from portal.services import message_service
from portal.services.agent_service import get_owned_agent
from portal.services.webhook_forwarder import Answered, ForwardOutcome, WebhookForwarder
from portal.websocket.events import WebSocketEvent
from portal.websocket.manager import ConnectionManager

logger = logging.getLogger(__name__)

NO_WEBHOOK_RESPONSE = "This agent is not configured with a webhook yet."
DEFAULT_AGENT_RESPONSE = "Agent response received"
AGENT_UNAVAILABLE_RESPONSE = "Sorry, the agent is currently unavailable."


@dataclass(frozen=True)
class RelayTicket:
    """Everything the continuation needs, captured while the request session is open."""
    message_id: int
    client_id: int
    agent_id: int
    text: str
    webhook_url: Optional[str]
    created_at: datetime

    def webhook_payload(self) -> dict:
        return {
            "message": self.text,
            "client_id": self.client_id,
            "agent_id": self.agent_id,
            "message_id": self.message_id,
            "timestamp": datetime.utcnow().isoformat() + "Z",
        }


def extract_response_text(body: Any) -> str:
    """Pick the reply text: ``response`` field, then ``message``, then a fixed placeholder."""
    if isinstance(body, dict):
        for key in ("response", "message"):
            value = body.get(key)
            if value:
                return value if isinstance(value, str) else str(value)
    return DEFAULT_AGENT_RESPONSE


def outcome_to_response(outcome: ForwardOutcome) -> tuple:
    """Map a forwarder outcome to (text, status)."""
    if isinstance(outcome, Answered):
        return extract_response_text(outcome.body), MessageStatus.ANSWERED
    return AGENT_UNAVAILABLE_RESPONSE, MessageStatus.FAILED


class RelayCoordinator:
    def __init__(
        self,
        forwarder: WebhookForwarder,
        connections: ConnectionManager,
        session_factory: Callable[[], Session] = SessionLocal,
    ):
        self.forwarder = forwarder
        self.connections = connections
        self.session_factory = session_factory

    def submit(self, db: Session, client: Client, agent_id: int, text: str) -> RelayTicket:
        """
        Validate and persist a chat message.

        Raises:
            ValidationError: empty text or inactive agent
            NotFoundError: agent missing or owned by another client
        """
        if not text or not text.strip():
            raise ValidationError("Message required")

        agent = get_owned_agent(db, client, agent_id)
        if not agent.is_active:
            raise ValidationError("Agent is not active")

        message = message_service.create_message(db, client, agent, text)
        logger.info(
            "Chat message created",
            extra={"client_id": client.id, "agent_id": agent.id, "message_id": message.id, "status": message.status.value},
        )
        return RelayTicket(
            message_id=message.id,
            client_id=client.id,
            agent_id=agent.id,
            text=text,
            webhook_url=agent.webhook_url,
            created_at=message.created_at,
        )

    async def relay(self, ticket: RelayTicket) -> str:
        """Forward, resolve and deliver one message. Returns the response text."""
        extra = {"client_id": ticket.client_id, "agent_id": ticket.agent_id, "message_id": ticket.message_id}

        if not ticket.webhook_url:
            text, status = NO_WEBHOOK_RESPONSE, MessageStatus.UNCONFIGURED
        else:
            await self._run_db(message_service.mark_forwarded, ticket.message_id)
            logger.info("Chat message forwarded", extra={**extra, "status": MessageStatus.FORWARDED.value})
            try:
                outcome = await self.forwarder.forward(ticket.webhook_url, ticket.webhook_payload())
            except Exception as e:
                logger.error(f"Forwarder raised unexpectedly: {e!r}", extra=extra, exc_info=True)
                outcome = None
            if outcome is None:
                text, status = AGENT_UNAVAILABLE_RESPONSE, MessageStatus.FAILED
            else:
                text, status = outcome_to_response(outcome)

        resolved = await self._run_db(message_service.resolve_message, ticket.message_id, text, status)
        if resolved is None:
            logger.error("Agent response could not be stored, not delivering", extra={**extra, "status": status.value})
            return text
        if resolved is False:
            logger.warning("Message already resolved or removed, ignoring resolution", extra=extra)
            return text
        logger.info("Chat message resolved", extra={**extra, "status": status.value})

        event = WebSocketEvent.agent_response(ticket.message_id, ticket.agent_id, text)
        delivered = await self.connections.deliver(ticket.client_id, event)
        logger.info(f"Agent response delivered to {delivered} connection(s)", extra=extra)
        return text

    async def _run_db(self, fn, *args) -> Optional[bool]:
        """Run a message_service call on a fresh session off the event loop. None on DB failure."""
        def _call():
            with self.session_factory() as db:
                return fn(db, *args)

        try:
            return await run_in_threadpool(_call)
        except SQLAlchemyError:
            logger.exception(f"Database error in relay step {fn.__name__}", extra={"message_id": args[0]})
            return None
