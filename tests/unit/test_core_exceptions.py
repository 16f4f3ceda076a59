"""Tests for core exceptions module."""

import pytest

from taskboard.core.exceptions import (
    APIException,
    BadRequestException,
    DeliveryFailedError,
    ExpiredTokenError,
    InvalidTokenError,
    MissingTokenError,
    NotFoundException,
    NotificationNotFoundError,
    RefreshExpiredError,
    TaskboardException,
    TaskException,
    TokenRefreshError,
    UnauthorizedException,
    UserNotFoundError,
    WebhookException,
    WebhookLookupError,
)


def test_base_exception() -> None:
    """Test base TaskboardException."""
    exc = TaskboardException("Test error", details={"key": "value"})

    assert str(exc) == "Test error"
    assert exc.message == "Test error"
    assert exc.details == {"key": "value"}


def test_base_exception_no_details() -> None:
    """Test base exception without details."""
    exc = TaskboardException("Test error")

    assert exc.details == {}


def test_notification_not_found() -> None:
    """Test the missing-notification task error carries the id."""
    exc = NotificationNotFoundError(17)

    assert isinstance(exc, TaskException)
    assert exc.notification_id == 17
    assert exc.details == {"notification_id": 17}
    assert "17" in exc.message


def test_webhook_exceptions() -> None:
    """Test webhook exception hierarchy."""
    delivery = DeliveryFailedError("HTTP 500: boom", status_code=500)

    assert isinstance(delivery, WebhookException)
    assert delivery.status_code == 500
    assert isinstance(WebhookLookupError("lookup failed"), WebhookException)


def test_api_exception_with_status() -> None:
    """Test API exception with status code."""
    exc = APIException("API error", status_code=500, details={"error": "internal"})

    assert exc.message == "API error"
    assert exc.status_code == 500
    assert exc.details == {"error": "internal"}


def test_not_found_exception() -> None:
    """Test NotFoundException defaults."""
    exc = NotFoundException()

    assert exc.status_code == 404
    assert exc.message == "Resource not found"


def test_bad_request_exception() -> None:
    """Test BadRequestException defaults."""
    exc = BadRequestException()

    assert exc.status_code == 400
    assert exc.message == "Bad request"


def test_unauthorized_exception() -> None:
    """Test UnauthorizedException defaults."""
    exc = UnauthorizedException()

    assert exc.status_code == 401
    assert exc.message == "Unauthorized"


@pytest.mark.parametrize(
    "error_cls, message, reason",
    [
        (MissingTokenError, "Refresh token is required", "can't be blank"),
        (InvalidTokenError, "Invalid refresh token", "is invalid or expired"),
        (ExpiredTokenError, "Refresh token has expired", "has expired"),
        (UserNotFoundError, "User not found or refresh token invalid", "is invalid"),
        (RefreshExpiredError, "Refresh token expired", "has expired"),
    ],
)
def test_token_refresh_errors(error_cls: type, message: str, reason: str) -> None:
    """Test every refresh failure is a 401 with a field error."""
    exc = error_cls()

    assert isinstance(exc, TokenRefreshError)
    assert exc.status_code == 401
    assert exc.message == message
    assert exc.details == {"refresh_token": [reason]}


def test_expired_token_is_invalid_token() -> None:
    """Test callers catching InvalidTokenError also see expiry."""
    with pytest.raises(InvalidTokenError):
        raise ExpiredTokenError()


def test_token_refresh_error_custom_details() -> None:
    """Test explicit details override the default field error."""
    exc = InvalidTokenError(details={"refresh_token": ["Signature verification failed."]})

    assert exc.details == {"refresh_token": ["Signature verification failed."]}
