"""Refresh-token exchange with single-use rotation."""

from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.auth.tokens import TokenCodec
from taskboard.core.exceptions import (
    MissingTokenError,
    RefreshExpiredError,
    UserNotFoundError,
)
from taskboard.core.logging import get_logger
from taskboard.storage.database.auth_models import User, generate_jti
from taskboard.storage.database.base import utcnow
from taskboard.storage.database.repository import UserRepository

logger = get_logger(__name__)


@dataclass(frozen=True)
class RefreshResult:
    """Credentials issued by a successful refresh."""

    user: User
    access_token: str
    refresh_token: str


class TokenRefresher:
    """Exchanges a refresh token for a new access token and a rotated refresh token.

    Every failure raises a :class:`~taskboard.core.exceptions.TokenRefreshError`
    subclass before anything is written. The only mutation, replacing the
    user's ``refresh_jti``, is a conditional update keyed on the value read
    during validation, so two concurrent refreshes with the same token cannot
    both succeed.
    """

    def __init__(
        self,
        session: AsyncSession,
        codec: TokenCodec,
        refresh_ttl: timedelta = timedelta(days=30),
    ) -> None:
        """Initialize refresher.

        Args:
            session: Database session
            codec: Token codec holding the signing secret
            refresh_ttl: Lifetime of newly issued refresh credentials
        """
        self.session = session
        self.codec = codec
        self.refresh_ttl = refresh_ttl
        self.users = UserRepository(session)

    async def refresh(self, refresh_token: Optional[str]) -> RefreshResult:
        """Validate ``refresh_token`` and issue rotated credentials.

        Raises:
            MissingTokenError: Token is empty or absent
            InvalidTokenError: Token is malformed, badly signed, expired or not a refresh token
            UserNotFoundError: No user holds the token's refresh_jti
            RefreshExpiredError: The stored refresh credential has expired
        """
        if not refresh_token or not refresh_token.strip():
            raise MissingTokenError()

        claims = self.codec.decode_refresh_token(refresh_token.strip())

        presented_jti = claims.get("refresh_jti")
        if not presented_jti:
            raise UserNotFoundError()

        user = await self.users.get_by_refresh_jti(presented_jti)
        if user is None:
            logger.warning("refresh_token_unknown_jti")
            raise UserNotFoundError()

        now = utcnow()
        if not user.refresh_credential_valid(now):
            logger.info("refresh_credential_expired", user_id=user.id)
            raise RefreshExpiredError()

        access_token = self.codec.create_access_token(user, now=now)

        rotated = await self.users.swap_refresh_jti(
            user,
            expected_jti=presented_jti,
            new_jti=generate_jti(),
            expires_at=now + self.refresh_ttl,
        )
        if not rotated:
            # Lost the race against another refresh using the same token
            logger.warning("refresh_token_reused", user_id=user.id)
            raise UserNotFoundError()

        await self.session.commit()

        new_refresh_token = self.codec.create_refresh_token(user, now=now)
        logger.info("token_refreshed", user_id=user.id)

        return RefreshResult(
            user=user,
            access_token=access_token,
            refresh_token=new_refresh_token,
        )
