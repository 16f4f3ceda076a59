"""Per-subscription delivery outcomes."""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional

import httpx

from taskboard.core.exceptions import DeliveryFailedError


@dataclass(frozen=True)
class DeliveryOutcome:
    """Result of delivering one event to one subscription."""

    subscription_id: int
    delivered: bool
    status_code: Optional[int] = None
    error: Optional[str] = None

    @classmethod
    def success(cls, subscription_id: int, status_code: int) -> "DeliveryOutcome":
        return cls(subscription_id=subscription_id, delivered=True, status_code=status_code)

    @classmethod
    def failure(cls, subscription_id: int, exc: BaseException) -> "DeliveryOutcome":
        return cls(
            subscription_id=subscription_id,
            delivered=False,
            status_code=getattr(exc, "status_code", None),
            error=describe_failure(exc),
        )

    def as_dict(self) -> dict[str, Any]:
        return {
            "subscription_id": self.subscription_id,
            "delivered": self.delivered,
            "status_code": self.status_code,
            "error": self.error,
        }


@dataclass
class DispatchResult:
    """Aggregate of one dispatch run."""

    deliveries: list[DeliveryOutcome] = field(default_factory=list)
    message: str = ""

    @property
    def delivered_count(self) -> int:
        return sum(1 for outcome in self.deliveries if outcome.delivered)

    @property
    def failed_count(self) -> int:
        return len(self.deliveries) - self.delivered_count

    def as_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "delivered": self.delivered_count,
            "failed": self.failed_count,
            "deliveries": [outcome.as_dict() for outcome in self.deliveries],
        }


def describe_failure(exc: BaseException) -> str:
    """Short human-readable reason for a failed delivery."""
    if isinstance(exc, DeliveryFailedError):
        return exc.message
    if isinstance(exc, httpx.TimeoutException):
        return f"Timeout: {exc}"
    if isinstance(exc, httpx.RequestError):
        return f"Request error: {exc}"
    return f"Unexpected error: {exc}"


async def isolate(
    subscription_id: int,
    attempt: Callable[[], Awaitable[int]],
) -> DeliveryOutcome:
    """Run one delivery attempt, turning any exception into a failure outcome.

    Args:
        subscription_id: Subscription being delivered to
        attempt: Coroutine factory returning the 2xx status code on success

    Returns:
        Tagged outcome; never raises for ordinary exceptions
    """
    try:
        status_code = await attempt()
    except Exception as e:
        return DeliveryOutcome.failure(subscription_id, e)
    return DeliveryOutcome.success(subscription_id, status_code)
