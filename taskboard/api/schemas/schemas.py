"""Pydantic schemas for API requests and responses."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from taskboard.storage.database.models import NotificationEvent


class ErrorResponse(BaseModel):
    """Error body returned for every API exception."""

    success: bool = False
    message: str
    errors: dict[str, Any] = Field(default_factory=dict)


# User / auth schemas
class UserCreate(BaseModel):
    """User registration request."""

    email: EmailStr
    name: str = Field(..., min_length=2, max_length=100)
    password: str = Field(..., min_length=8, max_length=72)


class UserLogin(BaseModel):
    """User login request."""

    email: EmailStr
    password: str


class RefreshRequest(BaseModel):
    """Refresh token exchange request; a missing token is reported as 401, not 422."""

    refresh_token: Optional[str] = None


class UserResponse(BaseModel):
    """User response."""

    id: int
    email: str
    name: str
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AuthResponse(BaseModel):
    """Credentials issued by login or refresh."""

    success: bool = True
    data: UserResponse
    token: str
    refresh_token: str
    message: str


# Notification schemas
class ActorResponse(BaseModel):
    """Who triggered a notification."""

    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)


class NotificationResponse(BaseModel):
    """Notification response."""

    id: int
    event_type: NotificationEvent
    metadata: dict[str, Any] = Field(validation_alias="meta")
    message: str
    url: str
    read: bool
    read_at: Optional[datetime]
    notifiable_type: str
    notifiable_id: int
    actor: ActorResponse
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PaginatedNotifications(BaseModel):
    """Paginated notification list."""

    items: list[NotificationResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class UnreadCountResponse(BaseModel):
    """Unread notification counter."""

    unread_count: int


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    success: bool = True
    message: str
    count: Optional[int] = None
