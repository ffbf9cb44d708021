"""Typed failures raised by services and rendered by the HTTP layer."""

from __future__ import annotations

from typing import Any, Dict

from starlette import status


class ServiceError(Exception):
    """Base class carrying a stable error code and an HTTP status."""

    code = "INTERNAL_ERROR"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Internal Server Error"
    # Whether ``message`` may be shown to clients.
    public = True

    def __init__(
        self, message: str | None = None, details: Dict[str, Any] | None = None
    ) -> None:
        super().__init__(message or self.message)
        self.message = message or self.message
        self.details = details


class ValidationError(ServiceError):
    code = "VALIDATION_ERROR"
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid input"


class NotFound(ServiceError):
    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND
    message = "Not found"


class Unauthorized(ServiceError):
    code = "UNAUTHORIZED"
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Could not validate credentials"


class TokenExpired(Unauthorized):
    code = "TOKEN_EXPIRED"
    message = "Token has expired"


class InvalidCredentials(Unauthorized):
    code = "INVALID_CREDENTIALS"
    message = "Invalid username or password"


class InsufficientStock(ServiceError):
    code = "INSUFFICIENT_STOCK"
    status_code = status.HTTP_409_CONFLICT
    message = "Not enough stock"


class ConfigurationError(ServiceError):
    """Database connection settings are missing or unusable."""

    code = "DB_CONFIG_ERROR"
    public = False


class ConnectivityError(ServiceError):
    """The database could not be reached."""

    code = "DB_UNAVAILABLE"
    public = False


__all__ = [
    "ServiceError",
    "ValidationError",
    "NotFound",
    "Unauthorized",
    "TokenExpired",
    "InvalidCredentials",
    "InsufficientStock",
    "ConfigurationError",
    "ConnectivityError",
]
