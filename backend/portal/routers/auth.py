from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session
import logging

from portal.db import get_db
from portal.deps import Principal, get_current_principal
from portal.exceptions import AuthenticationError
from portal.models import Role
from portal.schemas import (
    AdminIdentity,
    AdminLoginResponse,
    ClientIdentity,
    ClientLoginResponse,
    LoginRequest,
    MessageResponse,
    PrincipalResponse,
)
from portal.services import client_service
from portal.rate_limit import limiter, AUTH_RATE_LIMIT
from portal.utils.cookie_auth import issue_session, clear_auth_cookie

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=ClientLoginResponse)
@limiter.limit(AUTH_RATE_LIMIT)
def login(login_data: LoginRequest, response: Response, request: Request, db: Session = Depends(get_db)):
    """Client login with username and password"""
    client = client_service.authenticate_client(db, login_data.username, login_data.password)
    if not client:
        logger.info(f"Failed client login for: {login_data.username}")
        raise AuthenticationError("Invalid credentials")

    access_token = issue_session(response, client.id, client.username, Role.CLIENT.value)
    logger.info(f"Client logged in successfully: {client.username}", extra={"client_id": client.id})

    return ClientLoginResponse(access_token=access_token, user=ClientIdentity.model_validate(client))


@router.post("/admin/login", response_model=AdminLoginResponse)
@limiter.limit(AUTH_RATE_LIMIT)
def admin_login(login_data: LoginRequest, response: Response, request: Request, db: Session = Depends(get_db)):
    """Admin login with username and password"""
    admin = client_service.authenticate_admin(db, login_data.username, login_data.password)
    if not admin:
        logger.info(f"Failed admin login for: {login_data.username}")
        raise AuthenticationError("Invalid credentials")

    access_token = issue_session(response, admin.id, admin.username, Role.ADMIN.value)
    logger.info(f"Admin logged in successfully: {admin.username}")

    return AdminLoginResponse(access_token=access_token, user=AdminIdentity.model_validate(admin))


@router.get("/me", response_model=PrincipalResponse)
def me(principal: Principal = Depends(get_current_principal)):
    return PrincipalResponse(id=principal.id, username=principal.username, role=principal.role.value)


@router.post("/logout", response_model=MessageResponse)
def logout(response: Response):
    """Logout by clearing the auth cookie"""
    clear_auth_cookie(response)
    return MessageResponse(message="Logged out successfully")
