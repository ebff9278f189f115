from datetime import datetime
from typing import List

from sqlalchemy.orm import Session

from portal.models import Agent, Client, Message, MessageStatus
from portal.services.agent_service import get_owned_agent


def create_message(db: Session, client: Client, agent: Agent, text: str) -> Message:
    """Persist a new, unresolved message"""
    message = Message(
        client_id=client.id,
        agent_id=agent.id,
        message=text,
        status=MessageStatus.PENDING,
    )
    db.add(message)
    db.commit()
    db.refresh(message)
    return message


def mark_forwarded(db: Session, message_id: int) -> bool:
    """PENDING -> FORWARDED. Returns False if the message has moved on already."""
    updated = (
        db.query(Message)
        .filter(Message.id == message_id, Message.status == MessageStatus.PENDING)
        .update({"status": MessageStatus.FORWARDED}, synchronize_session=False)
    )
    db.commit()
    return updated == 1


def resolve_message(db: Session, message_id: int, response: str, status: MessageStatus) -> bool:
    """
    Write the response onto a message, once.

    The update only matches rows that have no response yet, so a second
    resolution (duplicate callback, retried forward) changes nothing and
    returns False.
    """
    updated = (
        db.query(Message)
        .filter(Message.id == message_id, Message.response.is_(None))
        .update(
            {
                "response": response,
                "status": status,
                "resolved_at": datetime.utcnow(),
            },
            synchronize_session=False,
        )
    )
    db.commit()
    return updated == 1


def get_history(db: Session, client: Client, agent_id: int) -> List[Message]:
    """Messages between a client and one of its agents, oldest first"""
    get_owned_agent(db, client, agent_id)
    return (
        db.query(Message)
        .filter(Message.client_id == client.id, Message.agent_id == agent_id)
        .order_by(Message.created_at.asc(), Message.id.asc())
        .all()
    )
