"""Shared fixtures for the taskboard test suite."""

import os

# Test environment must be in place before taskboard settings are first read
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("CELERY_TASK_ALWAYS_EAGER", "true")
os.environ.setdefault("CELERY_BROKER_URL", "memory://")
os.environ.setdefault("CELERY_RESULT_BACKEND", "cache+memory://")

from datetime import timedelta
from typing import Any, AsyncIterator, Callable, Optional

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from taskboard.api.app import app
from taskboard.api.dependencies import get_token_codec
from taskboard.auth.tokens import TokenCodec, get_password_hash
from taskboard.storage.database.auth_models import User
from taskboard.storage.database.base import Base, get_db
from taskboard.storage.database.models import Notification, NotificationEvent
from taskboard.storage.database.repository import (
    NotificationRepository,
    UserRepository,
    WebhookSubscriptionRepository,
)
from taskboard.storage.database.webhook_models import WebhookSubscription

TEST_PASSWORD = "password123"
TEST_SECRET = "test-secret-key"


@pytest_asyncio.fixture
async def engine() -> AsyncIterator[Any]:
    """In-memory database shared by every session of one test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: Any) -> async_sessionmaker:
    """Session factory bound to the test database."""
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory: async_sessionmaker) -> AsyncIterator[AsyncSession]:
    """Session used to arrange test data."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def codec() -> TokenCodec:
    """Token codec with a fixed test secret."""
    return TokenCodec(TEST_SECRET, access_ttl=timedelta(minutes=15))


@pytest.fixture
def make_user(db_session: AsyncSession) -> Callable[..., Any]:
    """Factory persisting a user."""
    counter = {"n": 0}

    async def _make(
        email: Optional[str] = None,
        name: str = "Test User",
        password: str = TEST_PASSWORD,
        **kwargs: Any,
    ) -> User:
        counter["n"] += 1
        user = await UserRepository(db_session).create(
            email=email or f"user{counter['n']}@example.com",
            name=name,
            hashed_password=get_password_hash(password),
            **kwargs,
        )
        await db_session.commit()
        return user

    return _make


@pytest.fixture
def make_subscription(db_session: AsyncSession) -> Callable[..., Any]:
    """Factory persisting a webhook subscription."""

    async def _make(
        user: User,
        url: str = "https://hooks.example.com/taskboard",
        events: Optional[list[str]] = None,
        **kwargs: Any,
    ) -> WebhookSubscription:
        kwargs.setdefault("name", "Test hook")
        subscription = await WebhookSubscriptionRepository(db_session).create(
            user_id=user.id,
            url=url,
            events=events if events is not None else [NotificationEvent.TASK_ASSIGNED.value],
            **kwargs,
        )
        await db_session.commit()
        return subscription

    return _make


@pytest.fixture
def make_notification(db_session: AsyncSession) -> Callable[..., Any]:
    """Factory persisting a notification."""

    async def _make(
        recipient: User,
        actor: User,
        event_type: NotificationEvent = NotificationEvent.TASK_ASSIGNED,
        notifiable_type: str = "Task",
        notifiable_id: int = 42,
        meta: Optional[dict] = None,
    ) -> Notification:
        notification = await NotificationRepository(db_session).create(
            user_id=recipient.id,
            actor_id=actor.id,
            event_type=event_type,
            notifiable_type=notifiable_type,
            notifiable_id=notifiable_id,
            meta=meta if meta is not None else {"task_title": "Write docs", "project_id": 7},
        )
        await db_session.commit()
        return notification

    return _make


@pytest_asyncio.fixture
async def client(session_factory: async_sessionmaker, codec: TokenCodec) -> AsyncIterator[httpx.AsyncClient]:
    """HTTP client talking to the app in-process against the test database."""

    async def override_get_db() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_token_codec] = lambda: codec

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(codec: TokenCodec) -> Callable[[User], dict[str, str]]:
    """Build bearer headers carrying a fresh access token for a user."""

    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {codec.create_access_token(user)}"}

    return _headers
