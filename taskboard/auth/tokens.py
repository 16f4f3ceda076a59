"""Password hashing and JWT encoding."""

from datetime import datetime, timedelta
from typing import Any, Optional

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from taskboard.core.config import Settings
from taskboard.core.exceptions import ExpiredTokenError, InvalidTokenError
from taskboard.core.logging import get_logger
from taskboard.storage.database.auth_models import User
from taskboard.storage.database.base import as_utc, utcnow

logger = get_logger(__name__)

REFRESH_TOKEN_TYPE = "refresh"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash password."""
    return pwd_context.hash(password)


class TokenCodec:
    """Signs and verifies access and refresh tokens.

    The signing secret is passed in explicitly so request handlers, workers
    and tests can each supply their own.
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        access_ttl: timedelta = timedelta(minutes=15),
    ) -> None:
        """Initialize codec.

        Args:
            secret_key: Shared HMAC secret
            algorithm: JWT signing algorithm
            access_ttl: Lifetime of access tokens
        """
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.access_ttl = access_ttl

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenCodec":
        """Build codec from application settings."""
        return cls(
            secret_key=settings.secret_key,
            algorithm=settings.jwt_algorithm,
            access_ttl=timedelta(seconds=settings.access_token_expiration),
        )

    def encode(self, claims: dict[str, Any]) -> str:
        """Sign arbitrary claims."""
        return jwt.encode(claims, self.secret_key, algorithm=self.algorithm)

    def create_access_token(self, user: User, now: Optional[datetime] = None) -> str:
        """Create short-lived access token bound to the user's session jti."""
        issued_at = now or utcnow()
        return self.encode(
            {
                "sub": str(user.id),
                "jti": user.jti,
                "iat": int(issued_at.timestamp()),
                "exp": int((issued_at + self.access_ttl).timestamp()),
            }
        )

    def create_refresh_token(self, user: User, now: Optional[datetime] = None) -> str:
        """Create refresh token bound to the user's current refresh_jti."""
        if not user.refresh_jti or user.refresh_token_expires_at is None:
            raise ValueError("User has no refresh credential to encode")

        issued_at = now or utcnow()
        return self.encode(
            {
                "sub": str(user.id),
                "refresh_jti": user.refresh_jti,
                "iat": int(issued_at.timestamp()),
                "exp": int(as_utc(user.refresh_token_expires_at).timestamp()),
                "type": REFRESH_TOKEN_TYPE,
            }
        )

    def decode(self, token: str) -> dict[str, Any]:
        """Decode and verify a token.

        Args:
            token: Encoded JWT

        Returns:
            Decoded claims

        Raises:
            ExpiredTokenError: If the exp claim has passed
            InvalidTokenError: If the token is malformed or badly signed
        """
        try:
            return jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except ExpiredSignatureError as e:
            logger.info("token_expired", reason=str(e))
            raise ExpiredTokenError() from e
        except JWTError as e:
            logger.info("token_rejected", reason=str(e))
            raise InvalidTokenError() from e

    def decode_refresh_token(self, token: str) -> dict[str, Any]:
        """Decode a token and require the refresh type marker."""
        claims = self.decode(token)
        if claims.get("type") != REFRESH_TOKEN_TYPE:
            raise InvalidTokenError(details={"refresh_token": ["is not a refresh token"]})
        return claims
