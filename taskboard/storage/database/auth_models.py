"""Authentication models."""

import uuid
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import Boolean, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from taskboard.storage.database.base import Base, TimestampMixin, as_utc, utcnow


def generate_jti() -> str:
    """Generate a random token identifier."""
    return str(uuid.uuid4())


class User(Base, TimestampMixin):
    """User model for authentication.

    ``jti`` identifies the current session and is embedded in every access
    token; ``refresh_jti`` identifies the single refresh token that may be
    exchanged for new credentials.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    jti: Mapped[str] = mapped_column(String(36), nullable=False, default=generate_jti, index=True)
    refresh_jti: Mapped[Optional[str]] = mapped_column(String(36), unique=True, nullable=True)
    refresh_token_expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    def generate_refresh_credential(self, ttl: timedelta) -> str:
        """Replace the refresh credential and return the new refresh_jti."""
        self.refresh_jti = generate_jti()
        self.refresh_token_expires_at = utcnow() + ttl
        return self.refresh_jti

    def refresh_credential_valid(self, now: Optional[datetime] = None) -> bool:
        """Check the stored refresh credential is present and unexpired."""
        if not self.refresh_jti or self.refresh_token_expires_at is None:
            return False
        return as_utc(self.refresh_token_expires_at) > (now or utcnow())

    def revoke_refresh_credential(self) -> None:
        """Drop the refresh credential."""
        self.refresh_jti = None
        self.refresh_token_expires_at = None

    def rotate_session(self) -> None:
        """Invalidate every access token issued for the current session."""
        self.jti = generate_jti()

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"
