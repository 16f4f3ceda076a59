"""Pydantic schemas for webhook subscriptions."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, HttpUrl

from taskboard.storage.database.models import NotificationEvent


class WebhookSubscriptionCreate(BaseModel):
    """Subscription creation request."""

    name: str = Field(..., min_length=3, max_length=100)
    url: HttpUrl
    events: list[NotificationEvent] = Field(..., min_length=1)
    secret: Optional[str] = Field(default=None, min_length=16, max_length=255)


class WebhookSubscriptionUpdate(BaseModel):
    """Subscription update request."""

    name: Optional[str] = Field(default=None, min_length=3, max_length=100)
    url: Optional[HttpUrl] = None
    events: Optional[list[NotificationEvent]] = Field(default=None, min_length=1)


class WebhookSubscriptionResponse(BaseModel):
    """Subscription response; the secret is never included."""

    id: int
    name: str
    url: str
    events: list[str]
    active: bool
    status: str
    health: str
    failure_count: int
    last_success_at: Optional[datetime]
    last_failure_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class WebhookSubscriptionCreatedResponse(WebhookSubscriptionResponse):
    """Returned once, on creation, so the caller can store the signing secret."""

    secret: str
