"""Notification inbox routes."""

import math
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.api.dependencies import get_current_user
from taskboard.api.schemas.schemas import (
    MessageResponse,
    NotificationResponse,
    PaginatedNotifications,
    UnreadCountResponse,
)
from taskboard.core.exceptions import NotFoundException
from taskboard.storage.database.auth_models import User
from taskboard.storage.database.base import get_db
from taskboard.storage.database.models import Notification, NotificationEvent
from taskboard.storage.database.repository import NotificationRepository

router = APIRouter(prefix="/notifications", tags=["notifications"])


async def _get_owned(notification_id: int, current_user: User, db: AsyncSession) -> Notification:
    notification = await NotificationRepository(db).get_for_user(notification_id, current_user.id)
    if not notification:
        raise NotFoundException("Notification not found")
    return notification


@router.get("", response_model=PaginatedNotifications)
async def list_notifications(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    unread: bool = False,
    event_type: Optional[NotificationEvent] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """List notifications for current user, newest first."""
    items, total = await NotificationRepository(db).list_for_user(
        current_user.id,
        unread_only=unread,
        event_type=event_type,
        limit=page_size,
        offset=(page - 1) * page_size,
    )
    return {
        "items": items,
        "total": total,
        "page": page,
        "page_size": page_size,
        "total_pages": math.ceil(total / page_size) if total else 0,
    }


@router.get("/unread_count", response_model=UnreadCountResponse)
async def unread_count(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Count unread notifications."""
    return {"unread_count": await NotificationRepository(db).count_unread(current_user.id)}


@router.post("/mark_all_as_read", response_model=MessageResponse)
async def mark_all_as_read(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Mark every unread notification as read."""
    count = await NotificationRepository(db).mark_all_as_read(current_user.id)
    await db.commit()
    return {"message": "All notifications marked as read", "count": count}


@router.get("/{notification_id}", response_model=NotificationResponse)
async def get_notification(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Get notification by ID."""
    return await _get_owned(notification_id, current_user, db)


@router.patch("/{notification_id}/mark_as_read", response_model=NotificationResponse)
async def mark_as_read(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Mark a notification as read."""
    notification = await _get_owned(notification_id, current_user, db)
    notification.mark_as_read()
    await db.commit()
    return notification


@router.patch("/{notification_id}/mark_as_unread", response_model=NotificationResponse)
async def mark_as_unread(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Mark a notification as unread."""
    notification = await _get_owned(notification_id, current_user, db)
    notification.mark_as_unread()
    await db.commit()
    return notification


@router.delete("/{notification_id}", response_model=MessageResponse)
async def delete_notification(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Delete a notification."""
    notification = await _get_owned(notification_id, current_user, db)
    await db.delete(notification)
    await db.commit()
    return {"message": "Notification deleted successfully"}
