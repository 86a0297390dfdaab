"""
Homesite – Domain exceptions.

Raised by services and guards, rendered as ``{"error": ...}`` JSON
bodies by the handlers in ``app.errors``.
"""

from fastapi import status


class HomesiteError(Exception):
    """Base class for all domain errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class StorageError(HomesiteError):
    """Filesystem read/write failure (a missing document is not one)."""


class ValidationError(HomesiteError):
    status_code = status.HTTP_400_BAD_REQUEST


class AuthError(HomesiteError):
    status_code = status.HTTP_401_UNAUTHORIZED


class UpstreamMailError(HomesiteError):
    """SMTP connect, login or send failure."""
