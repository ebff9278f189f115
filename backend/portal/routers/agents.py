from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from portal.db import get_db
from portal.deps import get_current_client
from portal.models import Client
from portal.schemas import AgentCreate, AgentResponse, AgentUpdate, MessageResponse
from portal.services import agent_service

router = APIRouter(prefix="/agents", tags=["agents"])


@router.get("", response_model=List[AgentResponse])
def list_agents(
    db: Session = Depends(get_db),
    current_client: Client = Depends(get_current_client)
):
    """Get the caller's agents"""
    return agent_service.list_agents(db, current_client)


@router.post("", response_model=AgentResponse, status_code=status.HTTP_201_CREATED)
def create_agent(
    data: AgentCreate,
    db: Session = Depends(get_db),
    current_client: Client = Depends(get_current_client)
):
    return agent_service.create_agent(db, current_client, data)


@router.get("/{agent_id}", response_model=AgentResponse)
def get_agent(
    agent_id: int,
    db: Session = Depends(get_db),
    current_client: Client = Depends(get_current_client)
):
    return agent_service.get_owned_agent(db, current_client, agent_id)


@router.put("/{agent_id}", response_model=AgentResponse)
def update_agent(
    agent_id: int,
    data: AgentUpdate,
    db: Session = Depends(get_db),
    current_client: Client = Depends(get_current_client)
):
    """Update name, description, webhook or active flag"""
    return agent_service.update_agent(db, current_client, agent_id, data)


@router.delete("/{agent_id}", response_model=MessageResponse)
def delete_agent(
    agent_id: int,
    db: Session = Depends(get_db),
    current_client: Client = Depends(get_current_client)
):
    agent_service.delete_agent(db, current_client, agent_id)
    return MessageResponse(message="Agent deleted successfully")
