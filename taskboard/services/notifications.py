"""Notification creation and webhook delivery enqueueing."""

from dataclasses import dataclass
from typing import Any, Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.core.logging import get_logger
from taskboard.storage.database.auth_models import User
from taskboard.storage.database.models import Notification, NotificationEvent
from taskboard.storage.database.repository import NotificationRepository
from taskboard.tasks.webhook_tasks import deliver_notification_webhooks_task

logger = get_logger(__name__)


@dataclass(frozen=True)
class NotifiableRef:
    """Weak reference to the entity a notification is about."""

    type: str
    id: int


def enqueue_webhook_delivery(notification_id: int) -> None:
    """Schedule the delivery task on the worker pool."""
    deliver_notification_webhooks_task.delay(notification_id)


class NotificationCreator:
    """Persists a notification for a domain action and schedules its delivery."""

    def __init__(
        self,
        session: AsyncSession,
        enqueue: Callable[[int], Any] = enqueue_webhook_delivery,
    ) -> None:
        """Initialize creator.

        Args:
            session: Database session
            enqueue: Called with the new notification id once it is committed
        """
        self.session = session
        self.enqueue = enqueue
        self.notifications = NotificationRepository(session)

    async def create(
        self,
        recipient: User,
        actor: User,
        notifiable: NotifiableRef,
        event_type: NotificationEvent,
        metadata: Optional[dict[str, Any]] = None,
    ) -> Optional[Notification]:
        """Create a notification unless the actor is notifying themselves.

        Returns:
            The notification, or None when no notification was needed
        """
        if recipient.id == actor.id:
            logger.debug("notification_skipped_self", user_id=recipient.id, event_type=event_type.value)
            return None

        notification = await self.notifications.create(
            user_id=recipient.id,
            actor_id=actor.id,
            notifiable_type=notifiable.type,
            notifiable_id=notifiable.id,
            event_type=event_type,
            meta=metadata or {},
        )
        await self.session.commit()

        # The worker reads the row, so enqueue only after commit
        self.enqueue(notification.id)
        return notification
