"""
JWT session cookie helpers.
"""
from fastapi import Response, Request
from typing import Optional
import logging

from portal.config import settings
from portal.auth import create_access_token

logger = logging.getLogger(__name__)

# Cookie settings
COOKIE_NAME = "access_token"
COOKIE_MAX_AGE = settings.ACCESS_TOKEN_EXPIRE_HOURS * 3600  # Convert to seconds


def issue_session(response: Response, identity_id: int, username: str, role: str) -> str:
    """
    Create a JWT for the identity and set it as an httpOnly cookie.

    Args:
        response: FastAPI Response object
        identity_id: Client or admin primary key
        username: Login name, embedded for display
        role: "client" or "admin"

    Returns:
        The access token, also returned in the login body for bearer use
    """
    access_token = create_access_token(data={"sub": identity_id, "username": username, "role": role})

    response.set_cookie(
        key=COOKIE_NAME,
        value=access_token,
        httponly=True,  # Prevents JavaScript access (XSS protection)
        secure=settings.is_production,  # HTTPS only in production
        samesite="lax",
        max_age=COOKIE_MAX_AGE,
        path="/"
    )

    logger.info(f"Session issued for {role}: {username}")

    return access_token


def get_token_from_cookie(request: Request) -> Optional[str]:
    return request.cookies.get(COOKIE_NAME)


def clear_auth_cookie(response: Response):
    """Clear authentication cookie (for logout)."""
    response.delete_cookie(key=COOKIE_NAME, path="/")
