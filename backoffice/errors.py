"""Error taxonomy shared by the auth and order services."""
from __future__ import annotations

from fastapi import status


class BackofficeError(RuntimeError):
    """Base class for failures that map onto an HTTP response."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    field = "message"
    default_message = "Server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ConfigurationError(BackofficeError):
    default_message = "Admin credentials are not set in the environment variables"


class UnauthorizedError(BackofficeError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized: Only admin can log in"


class ConflictError(BackofficeError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "User already exists"


class NotFoundError(BackofficeError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Order not found"


class InvalidIdentifierError(BackofficeError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid order id"


class InternalError(BackofficeError):
    """Store, hashing or signing failure."""

    def __init__(self, message: str | None = None, *, field: str = "message") -> None:
        super().__init__(message)
        self.field = field


__all__ = [
    "BackofficeError",
    "ConfigurationError",
    "ConflictError",
    "InternalError",
    "InvalidIdentifierError",
    "NotFoundError",
    "UnauthorizedError",
]
