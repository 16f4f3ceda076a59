"""Maintenance and scheduled tasks."""

import asyncio
from typing import AsyncContextManager, Callable

from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.core.logging import get_logger
from taskboard.storage.database.base import task_session
from taskboard.storage.database.repository import UserRepository
from taskboard.tasks.celery_app import celery_app

logger = get_logger(__name__)


@celery_app.task(name="cleanup_expired_sessions")
def cleanup_expired_sessions_task() -> dict:
    """Clear refresh credentials whose expiry has passed.

    Returns:
        Dict with results
    """
    return asyncio.run(cleanup_expired_sessions())


async def cleanup_expired_sessions(
    session_factory: Callable[[], AsyncContextManager[AsyncSession]] = task_session,
) -> dict:
    """Async implementation of session cleanup."""
    async with session_factory() as session:
        try:
            cleared = await UserRepository(session).clear_expired_refresh_credentials()
            await session.commit()

            logger.info("expired_sessions_cleaned", cleared=cleared)

            return {
                "status": "completed",
                "cleared": cleared,
            }

        except Exception as e:
            await session.rollback()
            logger.error("cleanup_sessions_failed", error=str(e), exc_info=True)
            return {
                "status": "failed",
                "error": str(e),
            }
