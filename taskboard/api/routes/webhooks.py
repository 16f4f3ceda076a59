"""Webhook subscription management routes."""

from typing import Any, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.api.dependencies import get_current_user
from taskboard.api.schemas.schemas import MessageResponse
from taskboard.api.schemas.webhook_schemas import (
    WebhookSubscriptionCreate,
    WebhookSubscriptionCreatedResponse,
    WebhookSubscriptionResponse,
    WebhookSubscriptionUpdate,
)
from taskboard.core.exceptions import NotFoundException
from taskboard.core.logging import get_logger
from taskboard.storage.database.auth_models import User
from taskboard.storage.database.base import get_db
from taskboard.storage.database.models import NotificationEvent
from taskboard.storage.database.repository import WebhookSubscriptionRepository
from taskboard.storage.database.webhook_models import WebhookSubscription

logger = get_logger(__name__)
router = APIRouter(prefix="/webhook_subscriptions", tags=["webhooks"])


async def _get_owned(
    subscription_id: int,
    current_user: User,
    db: AsyncSession,
) -> WebhookSubscription:
    subscription = await WebhookSubscriptionRepository(db).get_for_user(subscription_id, current_user.id)
    if not subscription:
        raise NotFoundException("Webhook subscription not found")
    return subscription


@router.get("/events", response_model=list[str])
async def list_event_types() -> Any:
    """List available webhook event types."""
    return [event.value for event in NotificationEvent]


@router.get("", response_model=list[WebhookSubscriptionResponse])
async def list_subscriptions(
    active: Optional[bool] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """List webhook subscriptions for current user."""
    return await WebhookSubscriptionRepository(db).list_for_user(current_user.id, active=active)


@router.post("", response_model=WebhookSubscriptionCreatedResponse, status_code=201)
async def create_subscription(
    subscription_data: WebhookSubscriptionCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Create new webhook subscription; the response carries the signing secret."""
    subscription = await WebhookSubscriptionRepository(db).create(
        user_id=current_user.id,
        name=subscription_data.name,
        url=str(subscription_data.url).strip(),
        secret=subscription_data.secret,
        events=sorted({event.value for event in subscription_data.events}),
    )
    await db.commit()
    return subscription


@router.get("/{subscription_id}", response_model=WebhookSubscriptionResponse)
async def get_subscription(
    subscription_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Get webhook subscription by ID."""
    return await _get_owned(subscription_id, current_user, db)


@router.patch("/{subscription_id}", response_model=WebhookSubscriptionResponse)
async def update_subscription(
    subscription_id: int,
    subscription_data: WebhookSubscriptionUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Update webhook subscription."""
    subscription = await _get_owned(subscription_id, current_user, db)

    update_data = subscription_data.model_dump(exclude_unset=True, exclude_none=True)

    if "events" in update_data:
        update_data["events"] = sorted({event.value for event in subscription_data.events or []})

    if "url" in update_data:
        update_data["url"] = str(subscription_data.url).strip()

    subscription = await WebhookSubscriptionRepository(db).update(subscription, **update_data)
    await db.commit()
    return subscription


@router.delete("/{subscription_id}", response_model=MessageResponse)
async def delete_subscription(
    subscription_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Delete webhook subscription."""
    subscription = await _get_owned(subscription_id, current_user, db)
    await WebhookSubscriptionRepository(db).delete(subscription)
    await db.commit()
    return {"message": "Webhook subscription deleted successfully"}


@router.post("/{subscription_id}/enable", response_model=WebhookSubscriptionResponse)
async def enable_subscription(
    subscription_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Re-enable a subscription and clear its failure counter."""
    subscription = await _get_owned(subscription_id, current_user, db)
    subscription.enable()
    await db.commit()
    await db.refresh(subscription)
    logger.info("webhook_subscription_enabled", subscription_id=subscription.id)
    return subscription


@router.post("/{subscription_id}/disable", response_model=WebhookSubscriptionResponse)
async def disable_subscription(
    subscription_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Stop deliveries to a subscription."""
    subscription = await _get_owned(subscription_id, current_user, db)
    subscription.disable()
    await db.commit()
    await db.refresh(subscription)
    logger.info("webhook_subscription_disabled", subscription_id=subscription.id)
    return subscription
