import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from portal.auth import get_password_hash, verify_password
from portal.exceptions import ConflictError, NotFoundError
from portal.models import Admin, Client
from portal.schemas import ClientCreate

logger = logging.getLogger(__name__)

DUPLICATE_CLIENT_MESSAGE = "Username or email already exists"


def authenticate_client(db: Session, username: str, password: str) -> Optional[Client]:
    """Return the client when the username/password pair is valid"""
    client = db.query(Client).filter(Client.username == username).first()
    if not client or not verify_password(password, client.password_hash):
        return None
    return client


def authenticate_admin(db: Session, username: str, password: str) -> Optional[Admin]:
    admin = db.query(Admin).filter(Admin.username == username).first()
    if not admin or not verify_password(password, admin.password_hash):
        return None
    return admin


def create_client(db: Session, data: ClientCreate) -> Client:
    """Create a client account; duplicate username or email raises ConflictError"""
    existing = db.query(Client).filter(
        (Client.username == data.username) | (Client.email == data.email)
    ).first()
    if existing:
        raise ConflictError(DUPLICATE_CLIENT_MESSAGE)

    client = Client(
        username=data.username,
        email=data.email,
        password_hash=get_password_hash(data.password),
        company_name=data.company_name,
        webhook_url=data.webhook_url,
    )
    db.add(client)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent insert
        db.rollback()
        raise ConflictError(DUPLICATE_CLIENT_MESSAGE)
    db.refresh(client)
    logger.info(f"Client created: {client.username}", extra={"client_id": client.id})
    return client


def list_clients(db: Session) -> List[Client]:
    return db.query(Client).order_by(Client.created_at.desc(), Client.id.desc()).all()


def get_client(db: Session, client_id: int) -> Client:
    client = db.query(Client).filter(Client.id == client_id).first()
    if not client:
        raise NotFoundError("Client", str(client_id))
    return client


def update_client_webhook(db: Session, client_id: int, webhook_url: str) -> Client:
    """Set the client-level webhook. The chat relay uses each agent's own webhook."""
    client = get_client(db, client_id)
    client.webhook_url = webhook_url
    db.commit()
    db.refresh(client)
    logger.info(f"Client webhook updated: {client.username}", extra={"client_id": client.id})
    return client


def delete_client(db: Session, client_id: int) -> None:
    """Delete a client together with its agents and messages"""
    client = get_client(db, client_id)
    username, company = client.username, client.company_name
    db.delete(client)
    db.commit()
    logger.info(f"Admin deleted client: {username} ({company})", extra={"client_id": client_id})


def seed_admin(db: Session, username: str, email: str, password: str) -> Optional[Admin]:
    """Create the default admin when no admin exists yet. Returns it, or None if skipped."""
    if db.query(Admin).count() > 0:
        return None
    admin = Admin(
        username=username,
        email=email,
        password_hash=get_password_hash(password),
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    logger.info(f"Default admin user created: {username}")
    return admin
