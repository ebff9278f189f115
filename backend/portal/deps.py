from dataclasses import dataclass
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional

from portal.db import get_db
from portal.auth import decode_access_token
from portal.exceptions import AuthenticationError
from portal.models import Admin, Client, Role
from portal.rbac import require_role
from portal.utils.cookie_auth import get_token_from_cookie

security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Principal:
    """Identity carried by a verified session token."""
    id: int
    username: str
    role: Role


def principal_from_token(token: Optional[str]) -> Optional[Principal]:
    """Decode a token into a Principal; None on any failure."""
    if not token:
        return None
    payload = decode_access_token(token)
    if payload is None:
        return None
    try:
        return Principal(
            id=int(payload["sub"]),
            username=str(payload.get("username", "")),
            role=Role(payload.get("role")),
        )
    except (KeyError, TypeError, ValueError):
        return None


def get_current_principal(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Principal:
    """Get the caller from the bearer header, falling back to the session cookie."""
    token = credentials.credentials if credentials else get_token_from_cookie(request)
    if not token:
        raise AuthenticationError("Access token required")

    principal = principal_from_token(token)
    if principal is None:
        raise AuthenticationError("Invalid or expired token")
    return principal


def get_current_client(
    request: Request,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> Client:
    require_role(principal, Role.CLIENT)
    client = db.query(Client).filter(Client.id == principal.id).first()
    if client is None:
        raise AuthenticationError("Client account no longer exists")
    request.state.client_id = client.id
    return client


def get_current_admin(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> Admin:
    require_role(principal, Role.ADMIN)
    admin = db.query(Admin).filter(Admin.id == principal.id).first()
    if admin is None:
        raise AuthenticationError("Admin account no longer exists")
    return admin


def get_connection_manager(request: Request):
    """Realtime registry created at startup (see main.py)."""
    return request.app.state.connection_manager


def get_relay(request: Request):
    return request.app.state.relay
