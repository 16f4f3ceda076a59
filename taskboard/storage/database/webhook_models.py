"""Webhook subscription model."""

import hashlib
import hmac
import secrets
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from taskboard.storage.database.base import Base, TimestampMixin, utcnow


class WebhookSubscription(Base, TimestampMixin):
    """External endpoint registered by a user for a set of event types."""

    __tablename__ = "webhook_subscriptions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    url: Mapped[str] = mapped_column(String(2048), nullable=False)
    secret: Mapped[str] = mapped_column(String(255), nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Event type tags this subscription listens to (JSON array of strings)
    events: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    # Delivery health
    failure_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_success_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    last_failure_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    @staticmethod
    def generate_secret() -> str:
        """Generate a new shared secret."""
        return secrets.token_hex(32)

    def listens_to(self, event: str) -> bool:
        """Check whether this subscription wants the given event type."""
        return getattr(event, "value", event) in (self.events or [])

    def generate_signature(self, body: bytes) -> str:
        """HMAC-SHA256 signature over the exact request body."""
        digest = hmac.new(self.secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
        return f"sha256={digest}"

    def record_success(self) -> None:
        self.failure_count = 0
        self.last_success_at = utcnow()

    def record_failure(self) -> None:
        self.failure_count = (self.failure_count or 0) + 1
        self.last_failure_at = utcnow()

    def enable(self) -> None:
        self.active = True
        self.failure_count = 0

    def disable(self) -> None:
        self.active = False

    @property
    def health(self) -> str:
        """Summarize recent delivery failures."""
        failures = self.failure_count or 0
        if failures >= 3:
            return "unhealthy"
        if failures > 0:
            return "degraded"
        return "healthy"

    @property
    def status(self) -> str:
        return "active" if self.active else "inactive"

    def __repr__(self) -> str:
        return f"<WebhookSubscription(id={self.id}, name='{self.name}', url='{self.url}')>"
