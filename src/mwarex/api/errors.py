"""Domain-specific exceptions and helpers for consistent API errors."""

from __future__ import annotations

from fastapi import HTTPException, status


class DomainError(Exception):
    """Base class for domain errors."""

    error: str = "domain_error"
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, *, error: str | None = None, status_code: int | None = None):
        super().__init__(message)
        if error:
            self.error = error
        if status_code:
            self.status_code = status_code


class ValidationError(DomainError):
    error = "validation_error"
    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(DomainError):
    error = "unauthorized"
    status_code = status.HTTP_401_UNAUTHORIZED


class PermissionDeniedError(DomainError):
    error = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(DomainError):
    error = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(DomainError):
    error = "conflict"
    status_code = status.HTTP_409_CONFLICT


class GoneError(DomainError):
    error = "gone"
    status_code = status.HTTP_410_GONE


class InvalidTransitionError(ConflictError):
    """A video status change that the approval workflow does not allow."""

    error = "invalid_transition"

    def __init__(self, action: str, current: str, allowed_from: frozenset[str] | None = None):
        self.action = action
        self.current = current
        self.allowed_from = allowed_from or frozenset()
        message = f"Cannot {action} a video in status '{current}'"
        if self.allowed_from:
            message += f" (allowed from: {', '.join(sorted(self.allowed_from))})"
        super().__init__(message)


class ConfigurationError(DomainError):
    error = "configuration_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class PublishError(DomainError):
    error = "publish_error"
    status_code = status.HTTP_502_BAD_GATEWAY


def to_http_exception(err: DomainError) -> HTTPException:
    """Convert DomainError to HTTPException with consistent payload."""
    return HTTPException(
        status_code=err.status_code,
        detail={"error": err.error, "detail": str(err)},
    )
