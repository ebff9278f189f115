"""Client account management - Admin access"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from portal.db import get_db
from portal.deps import get_current_admin
from portal.models import Admin
from portal.schemas import ClientCreate, ClientResponse, ClientWebhookUpdate, MessageResponse
from portal.services import client_service


router = APIRouter(prefix="/clients", tags=["clients"])


@router.get("", response_model=List[ClientResponse])
def list_clients(
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin)
):
    """List all client accounts, newest first"""
    return client_service.list_clients(db)


@router.post("", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
def create_client(
    data: ClientCreate,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin)
):
    """Create a client account"""
    return client_service.create_client(db, data)


@router.put("/{client_id}/webhook", response_model=MessageResponse)
def update_client_webhook(
    client_id: int,
    data: ClientWebhookUpdate,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin)
):
    """Set the client-level webhook URL"""
    client_service.update_client_webhook(db, client_id, data.webhook_url)
    return MessageResponse(message="Webhook updated successfully")


@router.delete("/{client_id}", response_model=MessageResponse)
def delete_client(
    client_id: int,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin)
):
    """Delete a client with all of its agents and messages"""
    client_service.delete_client(db, client_id)
    return MessageResponse(message="Client deleted successfully")
