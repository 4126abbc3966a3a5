from __future__ import annotations

from .enums import FailureReason


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class PortalError(DomainError):
    """Raised when the external portal cannot be used for this cycle."""

    reason = FailureReason.PORTAL_ERROR

    def __init__(self, message: str = "", *, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class AuthRejectedError(PortalError):
    """Raised when the portal rejects the credentials."""

    reason = FailureReason.AUTH_REJECTED


class SessionExpiredError(PortalError):
    """Raised when an authenticated page comes back as the login page."""

    reason = FailureReason.SESSION_EXPIRED


class PortalUnavailableError(PortalError):
    """Raised on DNS failures, refused connections, timeouts and 5xx answers."""

    reason = FailureReason.PORTAL_UNAVAILABLE


class PortalResponseError(PortalError):
    """Raised when the portal answers with something we cannot interpret."""

    reason = FailureReason.PORTAL_ERROR


class StorageError(DomainError):
    """Raised when the attendance store cannot complete an operation."""

    reason = FailureReason.STORAGE
