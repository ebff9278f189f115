from sqlalchemy.orm import Session
from typing import List
import logging

from portal.exceptions import NotFoundError
from portal.models import Agent, Client
from portal.schemas import AgentCreate, AgentUpdate

logger = logging.getLogger(__name__)


def list_agents(db: Session, client: Client) -> List[Agent]:
    """Get all agents owned by a client, newest first"""
    return (
        db.query(Agent)
        .filter(Agent.client_id == client.id)
        .order_by(Agent.created_at.desc(), Agent.id.desc())
        .all()
    )


def get_owned_agent(db: Session, client: Client, agent_id: int) -> Agent:
    """Agent by id, scoped to its owner. Someone else's agent is reported as not found."""
    agent = db.query(Agent).filter(
        Agent.id == agent_id,
        Agent.client_id == client.id
    ).first()
    if not agent:
        raise NotFoundError("Agent", str(agent_id))
    return agent


def create_agent(db: Session, client: Client, data: AgentCreate) -> Agent:
    agent = Agent(
        client_id=client.id,
        name=data.name,
        description=data.description,
        webhook_url=data.webhook_url,
        is_active=data.is_active,
    )
    db.add(agent)
    db.commit()
    db.refresh(agent)
    logger.info(f"Agent created: {agent.name}", extra={"client_id": client.id, "agent_id": agent.id})
    return agent


def update_agent(db: Session, client: Client, agent_id: int, data: AgentUpdate) -> Agent:
    """Apply the fields present in the request; an explicit null clears description/webhook"""
    agent = get_owned_agent(db, client, agent_id)

    update_data = data.model_dump(exclude_unset=True)
    for key in ("name", "is_active"):
        if key in update_data and update_data[key] is None:
            del update_data[key]
    for key, value in update_data.items():
        setattr(agent, key, value)

    db.commit()
    db.refresh(agent)
    return agent


def delete_agent(db: Session, client: Client, agent_id: int) -> None:
    """Delete an agent and its messages"""
    agent = get_owned_agent(db, client, agent_id)
    db.delete(agent)
    db.commit()
    logger.info(f"Agent deleted: {agent_id}", extra={"client_id": client.id, "agent_id": agent_id})
