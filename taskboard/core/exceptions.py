"""Custom exceptions for the taskboard application."""


class TaskboardException(Exception):
    """Base exception for all taskboard errors."""

    def __init__(self, message: str, details: dict | None = None) -> None:
        """Initialize exception with message and optional details.

        Args:
            message: Error message
            details: Additional error details
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class TaskException(TaskboardException):
    """Celery task execution error."""

    pass


class NotificationNotFoundError(TaskException):
    """Notification referenced by a background job no longer exists."""

    def __init__(self, notification_id: int) -> None:
        """Initialize with the missing notification id."""
        super().__init__(
            f"Notification {notification_id} not found",
            details={"notification_id": notification_id},
        )
        self.notification_id = notification_id


class WebhookException(TaskboardException):
    """Exceptions related to webhook dispatching."""

    pass


class DeliveryFailedError(WebhookException):
    """Delivery to a single subscription failed.

    Non-fatal: the dispatcher records it against the subscription and moves on.
    """

    def __init__(self, message: str, status_code: int | None = None, details: dict | None = None) -> None:
        """Initialize with the response status code, if any."""
        super().__init__(message, details)
        self.status_code = status_code


class WebhookLookupError(WebhookException):
    """Subscription or recipient lookup failed; the whole dispatch is aborted."""

    pass


class APIException(TaskboardException):
    """API-related exceptions."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: dict | None = None,
    ) -> None:
        """Initialize API exception.

        Args:
            message: Error message
            status_code: HTTP status code
            details: Additional error details
        """
        super().__init__(message, details)
        self.status_code = status_code


class NotFoundException(APIException):
    """Resource not found."""

    def __init__(self, message: str = "Resource not found", details: dict | None = None) -> None:
        """Initialize with 404 status code."""
        super().__init__(message, status_code=404, details=details)


class BadRequestException(APIException):
    """Bad request."""

    def __init__(self, message: str = "Bad request", details: dict | None = None) -> None:
        """Initialize with 400 status code."""
        super().__init__(message, status_code=400, details=details)


class UnauthorizedException(APIException):
    """Unauthorized access."""

    def __init__(self, message: str = "Unauthorized", details: dict | None = None) -> None:
        """Initialize with 401 status code."""
        super().__init__(message, status_code=401, details=details)


class TokenRefreshError(UnauthorizedException):
    """Base class for refresh-token failures."""

    default_message = "Refresh token is invalid"
    reason = "is invalid"

    def __init__(self, message: str | None = None, details: dict | None = None) -> None:
        """Initialize with a per-class default message and field error."""
        super().__init__(
            message or self.default_message,
            details=details or {"refresh_token": [self.reason]},
        )


class MissingTokenError(TokenRefreshError):
    """No refresh token was supplied."""

    default_message = "Refresh token is required"
    reason = "can't be blank"


class InvalidTokenError(TokenRefreshError):
    """Refresh token is malformed, badly signed or not a refresh token."""

    default_message = "Invalid refresh token"
    reason = "is invalid or expired"


class ExpiredTokenError(InvalidTokenError):
    """Refresh token signature is valid but its exp claim has passed."""

    default_message = "Refresh token has expired"
    reason = "has expired"


class UserNotFoundError(TokenRefreshError):
    """No user currently holds the refresh_jti carried by the token."""

    default_message = "User not found or refresh token invalid"
    reason = "is invalid"


class RefreshExpiredError(TokenRefreshError):
    """The user's stored refresh credential has expired."""

    default_message = "Refresh token expired"
    reason = "has expired"
