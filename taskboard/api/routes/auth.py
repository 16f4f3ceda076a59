"""Authentication routes."""

from datetime import timedelta
from typing import Any

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.api.dependencies import (
    get_current_user,
    get_refresh_ttl,
    get_token_codec,
    get_token_refresher,
)
from taskboard.api.schemas.schemas import (
    AuthResponse,
    MessageResponse,
    RefreshRequest,
    UserCreate,
    UserLogin,
    UserResponse,
)
from taskboard.auth.refresher import TokenRefresher
from taskboard.auth.tokens import TokenCodec, get_password_hash, verify_password
from taskboard.core.exceptions import BadRequestException, UnauthorizedException
from taskboard.core.logging import get_logger
from taskboard.storage.database.auth_models import User
from taskboard.storage.database.base import get_db
from taskboard.storage.database.repository import UserRepository

logger = get_logger(__name__)
router = APIRouter(prefix="/auth", tags=["authentication"])


def _auth_response(response: Response, user: User, token: str, refresh_token: str, message: str) -> dict:
    """Credentials body; the access token is mirrored in the Authorization header."""
    response.headers["Authorization"] = f"Bearer {token}"
    return {
        "success": True,
        "data": user,
        "token": token,
        "refresh_token": refresh_token,
        "message": message,
    }


@router.post("/register", response_model=UserResponse, status_code=201)
async def register(
    user_data: UserCreate,
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Register new user."""
    repo = UserRepository(db)

    if await repo.get_by_email(user_data.email):
        raise BadRequestException(
            "User with this email already exists",
            details={"email": ["has already been taken"]},
        )

    user = await repo.create(
        email=user_data.email.strip().lower(),
        name=user_data.name,
        hashed_password=get_password_hash(user_data.password),
    )
    await db.commit()

    logger.info("user_registered", user_id=user.id)
    return user


@router.post("/login", response_model=AuthResponse)
async def login(
    credentials: UserLogin,
    response: Response,
    db: AsyncSession = Depends(get_db),
    codec: TokenCodec = Depends(get_token_codec),
    refresh_ttl: timedelta = Depends(get_refresh_ttl),
) -> Any:
    """Login user and issue access and refresh tokens."""
    user = await UserRepository(db).get_by_email(credentials.email)

    if not user or not verify_password(credentials.password, user.hashed_password):
        raise UnauthorizedException("Invalid Email or password.")

    if not user.is_active:
        raise UnauthorizedException("User is inactive")

    user.generate_refresh_credential(refresh_ttl)
    await db.commit()

    token = codec.create_access_token(user)
    refresh_token = codec.create_refresh_token(user)

    logger.info("user_logged_in", user_id=user.id)
    return _auth_response(response, user, token, refresh_token, "Logged in successfully")


@router.post("/refresh", response_model=AuthResponse)
async def refresh(
    payload: RefreshRequest,
    response: Response,
    refresher: TokenRefresher = Depends(get_token_refresher),
) -> Any:
    """Exchange a refresh token for new credentials.

    Every failure is answered with 401 and a structured error body.
    """
    result = await refresher.refresh(payload.refresh_token)
    return _auth_response(
        response,
        result.user,
        result.access_token,
        result.refresh_token,
        "Token refreshed successfully",
    )


@router.delete("/logout", response_model=MessageResponse)
async def logout(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Revoke the refresh credential and every outstanding access token."""
    current_user.revoke_refresh_credential()
    current_user.rotate_session()
    await db.commit()

    logger.info("user_logged_out", user_id=current_user.id)
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: User = Depends(get_current_user),
) -> Any:
    """Get current user info."""
    return current_user
