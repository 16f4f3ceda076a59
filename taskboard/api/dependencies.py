"""Authentication dependencies for FastAPI."""

from datetime import timedelta
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.auth.refresher import TokenRefresher
from taskboard.auth.tokens import REFRESH_TOKEN_TYPE, TokenCodec
from taskboard.core.config import Settings, get_settings
from taskboard.core.exceptions import InvalidTokenError, UnauthorizedException
from taskboard.storage.database.auth_models import User
from taskboard.storage.database.base import get_db
from taskboard.storage.database.repository import UserRepository

security = HTTPBearer(auto_error=False)


def get_token_codec(settings: Settings = Depends(get_settings)) -> TokenCodec:
    """Token codec configured with the server signing secret."""
    return TokenCodec.from_settings(settings)


def get_refresh_ttl(settings: Settings = Depends(get_settings)) -> timedelta:
    """Lifetime of newly issued refresh credentials."""
    return timedelta(days=settings.refresh_token_expiration_days)


def get_token_refresher(
    db: AsyncSession = Depends(get_db),
    codec: TokenCodec = Depends(get_token_codec),
    refresh_ttl: timedelta = Depends(get_refresh_ttl),
) -> TokenRefresher:
    """Token refresher bound to the request session."""
    return TokenRefresher(db, codec, refresh_ttl=refresh_ttl)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db),
    codec: TokenCodec = Depends(get_token_codec),
) -> User:
    """Get current authenticated user from a bearer access token.

    Args:
        credentials: HTTP Bearer credentials
        db: Database session
        codec: Token codec

    Returns:
        Active user owning the token

    Raises:
        UnauthorizedException: If the token is missing, invalid, revoked or the user is inactive
    """
    if not credentials:
        raise UnauthorizedException("Not authenticated")

    try:
        payload = codec.decode(credentials.credentials)
    except InvalidTokenError as e:
        raise UnauthorizedException("Couldn't find an active session.") from e

    if payload.get("type") == REFRESH_TOKEN_TYPE:
        raise UnauthorizedException("Refresh tokens cannot be used for API access")

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError) as e:
        raise UnauthorizedException("Invalid token payload") from e

    user = await UserRepository(db).get_by_id(user_id)

    if user is None:
        raise UnauthorizedException("User not found")

    # Access tokens are revoked by rotating the user's session jti
    if payload.get("jti") != user.jti:
        raise UnauthorizedException("Couldn't find an active session.")

    if not user.is_active:
        raise UnauthorizedException("User is inactive")

    return user
