from fastapi import APIRouter, BackgroundTasks, Depends, Request
from sqlalchemy.orm import Session
from typing import List
import logging

from portal.db import get_db
from portal.deps import get_current_client, get_relay
from portal.middleware.request_id import get_request_id
from portal.models import Client
from portal.schemas import ChatMessageCreate, ChatMessageResponse, ChatSubmitResponse
from portal.services import message_service
from portal.services.relay_service import RelayCoordinator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])


@router.post("/{agent_id}", response_model=ChatSubmitResponse)
def send_message(
    agent_id: int,
    data: ChatMessageCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_client: Client = Depends(get_current_client),
    relay: RelayCoordinator = Depends(get_relay),
):
    """
    Store a message for one of the caller's agents and relay it.

    Only the message id comes back here. The agent's answer (or a placeholder
    when the agent has no webhook or the webhook fails) is pushed later as an
    ``agent_response`` WebSocket event and is visible in the history.
    """
    ticket = relay.submit(db, current_client, agent_id, data.message)
    background_tasks.add_task(relay.relay, ticket)
    logger.info(
        "Relay scheduled",
        extra={"request_id": get_request_id(request), "message_id": ticket.message_id, "agent_id": agent_id},
    )
    return ChatSubmitResponse(message_id=ticket.message_id)


@router.get("/{agent_id}/history", response_model=List[ChatMessageResponse])
def get_history(
    agent_id: int,
    db: Session = Depends(get_db),
    current_client: Client = Depends(get_current_client),
):
    """Past messages with this agent, oldest first"""
    return message_service.get_history(db, current_client, agent_id)
