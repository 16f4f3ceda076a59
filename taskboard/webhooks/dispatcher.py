"""Webhook event dispatcher."""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import httpx
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.core.config import Settings
from taskboard.core.exceptions import DeliveryFailedError, WebhookLookupError
from taskboard.core.logging import get_logger
from taskboard.storage.database.models import Notification
from taskboard.storage.database.repository import WebhookSubscriptionRepository
from taskboard.storage.database.webhook_models import WebhookSubscription
from taskboard.webhooks.outcome import DeliveryOutcome, DispatchResult, isolate
from taskboard.webhooks.payload import build_payload, serialize_payload

logger = get_logger(__name__)

NO_ACTIVE_WEBHOOKS = "No active webhooks for this event"


class WebhookDispatcher:
    """Fans a notification out to every matching active subscription.

    Delivery is best effort: each subscription is attempted independently and
    its failure is recorded on the subscription, never raised.
    """

    def __init__(
        self,
        db: AsyncSession,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
        user_agent: str = "Taskboard-Webhooks/1.0",
        max_concurrency: int = 1,
    ) -> None:
        """Initialize webhook dispatcher.

        Args:
            db: Database session
            client: Shared HTTP client; a short-lived one is created per dispatch if omitted
            timeout: Per-request timeout in seconds
            user_agent: User-Agent header sent to subscribers
            max_concurrency: Number of subscriptions delivered in parallel
        """
        self.db = db
        self.client = client
        self.timeout = timeout
        self.user_agent = user_agent
        self.max_concurrency = max(1, max_concurrency)
        self.subscriptions = WebhookSubscriptionRepository(db)

    @classmethod
    def from_settings(
        cls,
        db: AsyncSession,
        settings: Settings,
        client: Optional[httpx.AsyncClient] = None,
    ) -> "WebhookDispatcher":
        """Build dispatcher from application settings."""
        return cls(
            db,
            client=client,
            timeout=settings.webhook_timeout,
            user_agent=settings.webhook_user_agent,
            max_concurrency=settings.webhook_max_concurrency,
        )

    async def dispatch(self, notification: Notification) -> DispatchResult:
        """Deliver a notification to all interested subscriptions.

        Args:
            notification: Event to broadcast

        Returns:
            Per-subscription outcomes, in subscription id order

        Raises:
            WebhookLookupError: If the recipient or its subscriptions cannot be loaded
        """
        event = notification.event_type.value
        subscriptions = await self._find_subscriptions(notification)

        logger.info(
            "dispatching_webhook_event",
            notification_id=notification.id,
            event_type=event,
            webhooks_count=len(subscriptions),
            user_id=notification.user_id,
        )

        if not subscriptions:
            return DispatchResult(deliveries=[], message=NO_ACTIVE_WEBHOOKS)

        async with self._http_client() as client:
            if self.max_concurrency == 1:
                outcomes = [
                    await self._deliver(client, subscription, notification)
                    for subscription in subscriptions
                ]
            else:
                semaphore = asyncio.Semaphore(self.max_concurrency)

                async def bounded(subscription: WebhookSubscription) -> DeliveryOutcome:
                    async with semaphore:
                        return await self._deliver(client, subscription, notification)

                outcomes = list(await asyncio.gather(*(bounded(sub) for sub in subscriptions)))

        await self.db.commit()

        return DispatchResult(
            deliveries=outcomes,
            message=f"Dispatched to {len(outcomes)} webhook(s)",
        )

    async def _find_subscriptions(self, notification: Notification) -> list[WebhookSubscription]:
        """Active subscriptions of the recipient listening to the event type."""
        try:
            if notification.user is None:
                raise WebhookLookupError(
                    "Notification recipient not found",
                    details={"notification_id": notification.id, "user_id": notification.user_id},
                )
            return await self.subscriptions.list_listening(
                notification.user_id, notification.event_type.value
            )
        except SQLAlchemyError as e:
            raise WebhookLookupError(
                f"Subscription lookup failed: {e}",
                details={"notification_id": notification.id},
            ) from e

    async def _deliver(
        self,
        client: httpx.AsyncClient,
        subscription: WebhookSubscription,
        notification: Notification,
    ) -> DeliveryOutcome:
        """Attempt one subscription and record the outcome on it."""
        outcome = await isolate(
            subscription.id,
            lambda: self._post(client, subscription, notification),
        )

        if outcome.delivered:
            subscription.record_success()
            logger.info(
                "webhook_delivered_successfully",
                subscription_id=subscription.id,
                notification_id=notification.id,
                status_code=outcome.status_code,
            )
        else:
            subscription.record_failure()
            logger.warning(
                "webhook_delivery_failed",
                subscription_id=subscription.id,
                notification_id=notification.id,
                status_code=outcome.status_code,
                error=outcome.error,
                failure_count=subscription.failure_count,
            )
        return outcome

    async def _post(
        self,
        client: httpx.AsyncClient,
        subscription: WebhookSubscription,
        notification: Notification,
    ) -> int:
        """Send the signed request; returns the status code of a 2xx response."""
        body = serialize_payload(build_payload(notification))
        headers = {
            "Content-Type": "application/json",
            "X-Webhook-Signature": subscription.generate_signature(body),
            "X-Webhook-Event": notification.event_type.value,
            "User-Agent": self.user_agent,
        }

        response = await client.post(
            subscription.url,
            content=body,
            headers=headers,
            timeout=self.timeout,
        )

        if not response.is_success:
            raise DeliveryFailedError(
                f"HTTP {response.status_code}: {response.text[:500]}",
                status_code=response.status_code,
            )
        return response.status_code

    @asynccontextmanager
    async def _http_client(self) -> AsyncIterator[httpx.AsyncClient]:
        """Yield the injected client, or a fresh one closed on exit."""
        if self.client is not None:
            yield self.client
            return
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            yield client
