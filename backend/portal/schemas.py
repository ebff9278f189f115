from pydantic import BaseModel, EmailStr, Field, ConfigDict, computed_field, field_validator
from typing import Optional, Literal
from datetime import datetime
from urllib.parse import urlparse
from portal.models import MessageStatus


def _check_webhook_url(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip()
    if not v:
        return None
    parsed = urlparse(v)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError("Webhook URL must be an absolute http(s) URL")
    return v


def _check_not_blank(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    if not v.strip():
        raise ValueError("must not be empty")
    return v.strip()


# ============= Auth Schemas =============
class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class ClientIdentity(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    company_name: Optional[str] = None


class AdminIdentity(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    role: Literal["admin"] = "admin"


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"

    @computed_field
    @property
    def token(self) -> str:
        """Same value as access_token, under the name portal frontends read."""
        return self.access_token


class ClientLoginResponse(Token):
    user: ClientIdentity


class AdminLoginResponse(Token):
    user: AdminIdentity


class PrincipalResponse(BaseModel):
    id: int
    username: str
    role: str


class MessageResponse(BaseModel):
    message: str


# ============= Client Schemas =============
class ClientCreate(BaseModel):
    username: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=100)
    company_name: Optional[str] = Field(None, max_length=255)
    webhook_url: Optional[str] = None

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        return _check_not_blank(v)

    @field_validator("webhook_url")
    @classmethod
    def validate_webhook_url(cls, v: Optional[str]) -> Optional[str]:
        return _check_webhook_url(v)


class ClientWebhookUpdate(BaseModel):
    webhook_url: str

    @field_validator("webhook_url")
    @classmethod
    def validate_webhook_url(cls, v: str) -> str:
        v = _check_webhook_url(v)
        if v is None:
            raise ValueError("Webhook URL required")
        return v


class ClientResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    company_name: Optional[str] = None
    webhook_url: Optional[str] = None
    created_at: datetime


# ============= Agent Schemas =============
class AgentCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    webhook_url: Optional[str] = None
    is_active: bool = True

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _check_not_blank(v)

    @field_validator("webhook_url")
    @classmethod
    def validate_webhook_url(cls, v: Optional[str]) -> Optional[str]:
        return _check_webhook_url(v)


class AgentUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    webhook_url: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        return _check_not_blank(v)

    @field_validator("webhook_url")
    @classmethod
    def validate_webhook_url(cls, v: Optional[str]) -> Optional[str]:
        return _check_webhook_url(v)


class AgentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    client_id: int
    name: str
    description: Optional[str] = None
    webhook_url: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


# ============= Chat Schemas =============
class ChatMessageCreate(BaseModel):
    message: str

    @field_validator("message")
    @classmethod
    def validate_message(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Message required")
        return v


class ChatSubmitResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message_id: int = Field(..., alias="messageId")
    message: str = "Message sent successfully"


class ChatMessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    client_id: int
    agent_id: int
    message: str
    response: Optional[str] = None
    status: MessageStatus
    created_at: datetime
    resolved_at: Optional[datetime] = None

    @computed_field
    @property
    def timestamp(self) -> datetime:
        return self.created_at


# ============= Realtime Schemas =============
class ConnectionStats(BaseModel):
    total_connections: int
    connected_clients: int
