"""Declarative retry policy for Celery tasks."""

from dataclasses import dataclass
from typing import Any

from celery import Task
from celery.exceptions import Retry

from taskboard.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """How a task reacts to exceptions.

    Attributes:
        max_attempts: Total executions, first run included
        backoff: Delay in seconds before the n-th retry; the last entry repeats
        discard_on: Exception types dropped without retry
    """

    max_attempts: int = 4
    backoff: tuple[int, ...] = (3, 30, 300, 1800)
    discard_on: tuple[type[BaseException], ...] = ()

    def countdown(self, retries: int) -> int:
        """Delay before the retry following ``retries`` previous retries."""
        if not self.backoff:
            return 0
        return self.backoff[min(retries, len(self.backoff) - 1)]

    def should_discard(self, exc: BaseException) -> bool:
        return isinstance(exc, self.discard_on)

    def exhausted(self, retries: int) -> bool:
        """True when the attempt that just failed was the last one allowed."""
        return retries + 1 >= self.max_attempts


class RetryingTask(Task):
    """Task base applying its ``retry_policy`` to exceptions raised by ``run``.

    Declare the policy on the task::

        @celery_app.task(bind=True, base=RetryingTask, retry_policy=RetryPolicy(...))
    """

    retry_policy: RetryPolicy = RetryPolicy()

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        # The worker has already pushed the request; run directly to keep it
        try:
            return self.run(*args, **kwargs)
        except Retry:
            raise
        except Exception as exc:
            return self.handle_exception(exc, retries=self.request.retries or 0)

    def handle_exception(self, exc: Exception, retries: int) -> Any:
        """Discard, retry or give up according to the policy."""
        policy = self.retry_policy

        if policy.should_discard(exc):
            logger.warning(
                "task_discarded",
                task=self.name,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return {"status": "discarded", "error": str(exc)}

        if policy.exhausted(retries):
            logger.error(
                "task_retries_exhausted",
                task=self.name,
                attempts=retries + 1,
                error=str(exc),
                exc_info=exc,
            )
            raise exc

        countdown = policy.countdown(retries)
        logger.warning(
            "task_failed_will_retry",
            task=self.name,
            attempt=retries + 1,
            countdown=countdown,
            error=str(exc),
        )
        raise self.retry(
            exc=exc,
            countdown=countdown,
            max_retries=policy.max_attempts - 1,
        )
