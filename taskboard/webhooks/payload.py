"""Webhook request body construction."""

import json
from typing import Any

from taskboard.storage.database.base import as_utc
from taskboard.storage.database.models import Notification


def build_payload(notification: Notification) -> dict[str, Any]:
    """Envelope describing a notification for external subscribers."""
    user = notification.user
    actor = notification.actor
    created_at = as_utc(notification.created_at).isoformat() if notification.created_at else None

    return {
        "id": notification.id,
        "event": notification.event_type.value,
        "created_at": created_at,
        "data": {
            "notification": {
                "id": notification.id,
                "message": notification.message,
                "url": notification.url,
                "read": notification.read,
                "metadata": notification.meta or {},
            },
            "user": {
                "id": user.id,
                "name": user.name,
                "email": user.email,
            },
            "actor": {
                "id": actor.id,
                "name": actor.name,
            },
            "notifiable": {
                "type": notification.notifiable_type,
                "id": notification.notifiable_id,
            },
        },
    }


def serialize_payload(payload: dict[str, Any]) -> bytes:
    """Canonical JSON encoding; the signature covers exactly these bytes."""
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str).encode("utf-8")
