"""Webhook-related Celery tasks."""

import asyncio
from typing import Any, AsyncContextManager, Callable, Optional

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.core.config import get_settings
from taskboard.core.exceptions import NotificationNotFoundError
from taskboard.core.logging import bound_context, get_logger
from taskboard.storage.database.base import task_session
from taskboard.storage.database.repository import NotificationRepository
from taskboard.tasks.celery_app import celery_app
from taskboard.tasks.retry import RetryingTask, RetryPolicy
from taskboard.webhooks.dispatcher import WebhookDispatcher

logger = get_logger(__name__)

# Roughly 3s, 30s, 5min, 30min apart; a vanished notification is never retried
WEBHOOK_DELIVERY_RETRY_POLICY = RetryPolicy(
    max_attempts=4,
    backoff=(3, 30, 300, 1800),
    discard_on=(NotificationNotFoundError,),
)

SessionFactory = Callable[[], AsyncContextManager[AsyncSession]]


@celery_app.task(
    name="deliver_notification_webhooks",
    bind=True,
    base=RetryingTask,
    retry_policy=WEBHOOK_DELIVERY_RETRY_POLICY,
)
def deliver_notification_webhooks_task(self, notification_id: int) -> dict:
    """Deliver one notification to its recipient's webhook subscriptions.

    Args:
        self: Task instance
        notification_id: Notification to broadcast

    Returns:
        Dict with per-subscription outcomes
    """
    with bound_context(notification_id=notification_id, task_id=self.request.id):
        logger.info("webhook_delivery_task_started", attempt=(self.request.retries or 0) + 1)
        return asyncio.run(deliver_notification(notification_id))


async def deliver_notification(
    notification_id: int,
    session_factory: SessionFactory = task_session,
    client: Optional[httpx.AsyncClient] = None,
) -> dict[str, Any]:
    """Load a notification and dispatch it.

    Raises:
        NotificationNotFoundError: If the notification no longer exists
    """
    async with session_factory() as session:
        notification = await NotificationRepository(session).get_by_id(notification_id)
        if notification is None:
            raise NotificationNotFoundError(notification_id)

        dispatcher = WebhookDispatcher.from_settings(session, get_settings(), client=client)
        result = await dispatcher.dispatch(notification)

        if result.failed_count:
            # Per-subscription failures are tracked on the subscriptions themselves
            logger.warning(
                "webhook_delivery_partial_failure",
                notification_id=notification_id,
                delivered=result.delivered_count,
                failed=result.failed_count,
            )

        logger.info(
            "webhook_delivery_completed",
            notification_id=notification_id,
            message=result.message,
        )

        return {
            "status": "completed",
            "notification_id": notification_id,
            **result.as_dict(),
        }
