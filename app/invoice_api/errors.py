"""
Base exception shared by all service layers.

Every domain error carries a ``kind`` (a stable, machine-readable name
surfaced to API clients) and the HTTP status it maps to.
"""

from fastapi import status


class ServiceError(Exception):
    """Base class for errors surfaced to API clients as ``{detail, kind}``."""

    kind: str = "ServiceError"
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR


class NotFoundError(ServiceError):
    """Raised when a stored file or invoice does not exist."""

    kind = "NotFound"
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(ServiceError):
    """Raised when a record would violate a uniqueness constraint."""

    kind = "Conflict"
    status_code = status.HTTP_409_CONFLICT


class RequestValidationFailed(ServiceError):
    """Raised when a request is well-formed HTTP but violates input rules."""

    kind = "ValidationError"
    status_code = status.HTTP_400_BAD_REQUEST


class PayloadTooLargeError(RequestValidationFailed):
    """Raised when an uploaded file exceeds the configured size limit."""

    status_code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
