"""SQLAlchemy models for notifications."""

import datetime
import enum
from typing import Callable, Optional

from sqlalchemy import JSON, DateTime, Enum, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskboard.storage.database.auth_models import User
from taskboard.storage.database.base import Base, TimestampMixin, utcnow


class NotificationEvent(str, enum.Enum):
    """Event types a notification can carry."""

    MENTION = "mention"
    TASK_ASSIGNED = "task_assigned"
    TASK_COMPLETED = "task_completed"
    COMMENT_ADDED = "comment_added"
    DEADLINE_SOON = "deadline_soon"
    PROJECT_SHARED = "project_shared"
    TASK_STATUS_CHANGED = "task_status_changed"


class Notification(Base, TimestampMixin):
    """One domain occurrence delivered to a recipient.

    ``notifiable_type``/``notifiable_id`` point at the subject entity (a task,
    comment or project) without a foreign key.
    """

    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    actor_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    event_type: Mapped[NotificationEvent] = mapped_column(
        Enum(
            NotificationEvent,
            native_enum=False,
            length=50,
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
    )
    notifiable_type: Mapped[str] = mapped_column(String(50), nullable=False)
    notifiable_id: Mapped[int] = mapped_column(Integer, nullable=False)
    meta: Mapped[dict] = mapped_column("metadata", JSON, nullable=False, default=dict)
    read_at: Mapped[Optional[datetime.datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    user: Mapped[User] = relationship(foreign_keys=[user_id], lazy="selectin")
    actor: Mapped[User] = relationship(foreign_keys=[actor_id], lazy="selectin")

    __table_args__ = (
        Index("ix_notifications_user_read", "user_id", "read_at"),
        Index("ix_notifications_user_event_type", "user_id", "event_type"),
        Index("ix_notifications_created_at", "created_at"),
    )

    @property
    def read(self) -> bool:
        return self.read_at is not None

    @property
    def unread(self) -> bool:
        return not self.read

    def mark_as_read(self) -> None:
        if not self.read:
            self.read_at = utcnow()

    def mark_as_unread(self) -> None:
        self.read_at = None

    @property
    def message(self) -> str:
        """Human-friendly description of the event."""
        meta = self.meta or {}
        actor = self.actor.name if self.actor is not None else "Someone"
        task_title = meta.get("task_title")

        if self.event_type == NotificationEvent.MENTION:
            return f"{actor} mentioned you in a comment"
        if self.event_type == NotificationEvent.TASK_ASSIGNED:
            return f'{actor} assigned you to "{task_title}"'
        if self.event_type == NotificationEvent.TASK_COMPLETED:
            return f'{actor} completed the task "{task_title}"'
        if self.event_type == NotificationEvent.COMMENT_ADDED:
            return f'{actor} commented on "{task_title}"'
        if self.event_type == NotificationEvent.DEADLINE_SOON:
            return f'Task "{task_title}" is due soon'
        if self.event_type == NotificationEvent.PROJECT_SHARED:
            return f'{actor} shared the project "{meta.get("project_name")}" with you'
        if self.event_type == NotificationEvent.TASK_STATUS_CHANGED:
            return f'{actor} changed status of "{task_title}" to {meta.get("new_status")}'
        return "New notification"

    @property
    def url(self) -> str:
        """Frontend route for the subject entity."""
        builder = NOTIFIABLE_URL_BUILDERS.get(self.notifiable_type)
        if builder is None:
            return "/"
        return builder(self)

    def __repr__(self) -> str:
        return (
            f"<Notification(id={self.id}, user_id={self.user_id}, "
            f"event_type='{self.event_type.value if self.event_type else None}')>"
        )


def _task_url(notification: Notification) -> str:
    meta = notification.meta or {}
    return f"/projects/{meta.get('project_id')}/tasks/{notification.notifiable_id}"


def _comment_url(notification: Notification) -> str:
    meta = notification.meta or {}
    return f"/projects/{meta.get('project_id')}/tasks/{meta.get('task_id')}"


def _project_url(notification: Notification) -> str:
    return f"/projects/{notification.notifiable_id}"


# Subject type tag -> frontend route builder
NOTIFIABLE_URL_BUILDERS: dict[str, Callable[[Notification], str]] = {
    "Task": _task_url,
    "Comment": _comment_url,
    "Project": _project_url,
}
