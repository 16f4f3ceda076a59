"""Webhook notification system."""

from taskboard.webhooks.dispatcher import WebhookDispatcher
from taskboard.webhooks.outcome import DeliveryOutcome, DispatchResult

__all__ = ["DeliveryOutcome", "DispatchResult", "WebhookDispatcher"]
