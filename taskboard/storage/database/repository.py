"""Database repository layer."""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from taskboard.core.logging import get_logger
from taskboard.storage.database.auth_models import User
from taskboard.storage.database.base import utcnow
from taskboard.storage.database.models import Notification, NotificationEvent
from taskboard.storage.database.webhook_models import WebhookSubscription

logger = get_logger(__name__)


class UserRepository:
    """Repository for User model."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session."""
        self.session = session

    async def create(self, **kwargs: Any) -> User:
        """Create new user."""
        user = User(**kwargs)
        self.session.add(user)
        await self.session.flush()
        await self.session.refresh(user)
        logger.info("user_created", user_id=user.id)
        return user

    async def get_by_id(self, user_id: int) -> Optional[User]:
        """Get user by ID."""
        result = await self.session.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email (case-insensitive)."""
        result = await self.session.execute(
            select(User).where(User.email == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def get_by_refresh_jti(self, refresh_jti: str) -> Optional[User]:
        """Get the user currently holding a refresh credential."""
        result = await self.session.execute(select(User).where(User.refresh_jti == refresh_jti))
        return result.scalar_one_or_none()

    async def swap_refresh_jti(
        self,
        user: User,
        expected_jti: str,
        new_jti: str,
        expires_at: datetime,
    ) -> bool:
        """Replace the refresh credential only if it still equals ``expected_jti``.

        Returns:
            True if this call performed the rotation
        """
        result = await self.session.execute(
            update(User)
            .where(User.id == user.id, User.refresh_jti == expected_jti)
            .values(refresh_jti=new_jti, refresh_token_expires_at=expires_at)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return False

        # Row already holds these values; keep the instance in sync without a second UPDATE
        set_committed_value(user, "refresh_jti", new_jti)
        set_committed_value(user, "refresh_token_expires_at", expires_at)
        return True

    async def clear_expired_refresh_credentials(self, now: Optional[datetime] = None) -> int:
        """Drop refresh credentials whose expiry has passed."""
        result = await self.session.execute(
            update(User)
            .where(
                User.refresh_jti.isnot(None),
                User.refresh_token_expires_at < (now or utcnow()),
            )
            .values(refresh_jti=None, refresh_token_expires_at=None)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount


class NotificationRepository:
    """Repository for Notification model."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session."""
        self.session = session

    async def create(self, **kwargs: Any) -> Notification:
        """Create new notification."""
        notification = Notification(**kwargs)
        self.session.add(notification)
        await self.session.flush()
        await self.session.refresh(notification)
        logger.info(
            "notification_created",
            notification_id=notification.id,
            user_id=notification.user_id,
            event_type=notification.event_type.value,
        )
        return notification

    async def get_by_id(self, notification_id: int) -> Optional[Notification]:
        """Get notification by ID."""
        result = await self.session.execute(
            select(Notification).where(Notification.id == notification_id)
        )
        return result.scalar_one_or_none()

    async def get_for_user(self, notification_id: int, user_id: int) -> Optional[Notification]:
        """Get a notification owned by the given recipient."""
        result = await self.session.execute(
            select(Notification).where(
                Notification.id == notification_id,
                Notification.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_for_user(
        self,
        user_id: int,
        unread_only: bool = False,
        event_type: Optional[NotificationEvent] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Notification], int]:
        """List a recipient's notifications, newest first, with total count."""
        query = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            query = query.where(Notification.read_at.is_(None))
        if event_type is not None:
            query = query.where(Notification.event_type == event_type)

        total_result = await self.session.execute(
            select(func.count()).select_from(query.subquery())
        )
        total = total_result.scalar_one()

        result = await self.session.execute(
            query.order_by(Notification.created_at.desc(), Notification.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all()), total

    async def count_unread(self, user_id: int) -> int:
        """Count unread notifications for a recipient."""
        result = await self.session.execute(
            select(func.count(Notification.id)).where(
                Notification.user_id == user_id,
                Notification.read_at.is_(None),
            )
        )
        return result.scalar_one()

    async def mark_all_as_read(self, user_id: int) -> int:
        """Mark every unread notification of a recipient as read."""
        result = await self.session.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.read_at.is_(None))
            .values(read_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount


class WebhookSubscriptionRepository:
    """Repository for WebhookSubscription model."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session."""
        self.session = session

    async def create(self, **kwargs: Any) -> WebhookSubscription:
        """Create new subscription, generating a secret when none is given."""
        if not kwargs.get("secret"):
            kwargs["secret"] = WebhookSubscription.generate_secret()
        subscription = WebhookSubscription(**kwargs)
        self.session.add(subscription)
        await self.session.flush()
        await self.session.refresh(subscription)
        logger.info(
            "webhook_subscription_created",
            subscription_id=subscription.id,
            user_id=subscription.user_id,
            events=subscription.events,
        )
        return subscription

    async def get_for_user(self, subscription_id: int, user_id: int) -> Optional[WebhookSubscription]:
        """Get a subscription owned by the given user."""
        result = await self.session.execute(
            select(WebhookSubscription).where(
                WebhookSubscription.id == subscription_id,
                WebhookSubscription.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_for_user(
        self,
        user_id: int,
        active: Optional[bool] = None,
    ) -> list[WebhookSubscription]:
        """List a user's subscriptions, newest first."""
        query = select(WebhookSubscription).where(WebhookSubscription.user_id == user_id)
        if active is not None:
            query = query.where(WebhookSubscription.active.is_(active))
        result = await self.session.execute(
            query.order_by(WebhookSubscription.created_at.desc(), WebhookSubscription.id.desc())
        )
        return list(result.scalars().all())

    async def list_listening(self, user_id: int, event: str) -> list[WebhookSubscription]:
        """Active subscriptions of a user that listen to ``event``, in id order."""
        result = await self.session.execute(
            select(WebhookSubscription)
            .where(
                WebhookSubscription.user_id == user_id,
                WebhookSubscription.active.is_(True),
            )
            .order_by(WebhookSubscription.id)
        )
        # events is a JSON array; membership is checked in Python to stay backend-neutral
        return [sub for sub in result.scalars().all() if sub.listens_to(event)]

    async def update(self, subscription: WebhookSubscription, **kwargs: Any) -> WebhookSubscription:
        """Update subscription."""
        for key, value in kwargs.items():
            setattr(subscription, key, value)
        await self.session.flush()
        await self.session.refresh(subscription)
        logger.info("webhook_subscription_updated", subscription_id=subscription.id)
        return subscription

    async def delete(self, subscription: WebhookSubscription) -> None:
        """Delete subscription."""
        await self.session.delete(subscription)
        await self.session.flush()
        logger.info("webhook_subscription_deleted", subscription_id=subscription.id)
