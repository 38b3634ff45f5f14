"""Closed set of authentication errors surfaced to HTTP callers.

Every variant carries the status code and public message the API returns;
handlers in ``blogauth.main`` turn them into ``{"success": false, "error": ...}``.
"""

import math
from datetime import timedelta


def format_retry_after(remaining: timedelta) -> str:
    """Human-readable lock remainder, rounded up (e.g. ``'30 minutes'``, ``'45 seconds'``)."""
    seconds = max(1, math.ceil(remaining.total_seconds()))
    if seconds < 60:
        return f"{seconds} second" + ("" if seconds == 1 else "s")
    minutes = math.ceil(seconds / 60)
    return f"{minutes} minute" + ("" if minutes == 1 else "s")


class AuthError(Exception):
    """Base class for errors the auth boundary reports to callers."""

    status_code: int = 401
    message: str = "Not authenticated"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class InvalidCredentials(AuthError):
    """Unknown identifier or wrong secret; the two cases are indistinguishable."""

    message = "Invalid credentials"


class AccountLocked(AuthError):
    """Account is inside its lockout window."""

    def __init__(self, retry_after: timedelta) -> None:
        self.retry_after = retry_after
        super().__init__(
            f"Account temporarily locked. Try again in {format_retry_after(retry_after)}"
        )

    @property
    def retry_after_seconds(self) -> int:
        return max(1, math.ceil(self.retry_after.total_seconds()))


class AccountInactive(AuthError):
    message = "Account is disabled"


class InvalidToken(AuthError):
    message = "Token is not valid"


class TokenExpired(AuthError):
    message = "Token expired"


class AccountNotFound(AuthError):
    """Token signature is valid but the account it names no longer exists."""

    message = "User not found"


class AccountAlreadyExists(AuthError):
    status_code = 400

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"User with this {field} already exists")


class IncorrectPassword(AuthError):
    status_code = 400
    message = "Current password is incorrect"


class Forbidden(AuthError):
    status_code = 403
    message = "Access forbidden - insufficient permissions"


class LockoutBookkeepingError(Exception):
    """Recording a failed attempt could not be persisted; the attempt is still rejected."""


class UserNotFound(AuthError):
    """Addressed account does not exist (user management routes)."""

    status_code = 404
    message = "User not found"


class CannotDeleteSelf(AuthError):
    status_code = 400
    message = "Cannot delete your own account"


class StorageFailure(Exception):
    """An account write failed after retries; ``message`` is what the caller sees."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)
