"""
Shared exceptions for AI service modules.
"""

from fastapi import status

from ...errors import ServiceError


class AIServiceError(ServiceError):
    """Raised when AI service operations fail."""

    kind = "AIServiceError"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class MissingApiKeyError(AIServiceError):
    """Raised when normalization is requested without a configured API key."""

    kind = "MissingApiKey"


class MalformedModelResponseError(AIServiceError):
    """Raised when the model reply is not a valid invoice record."""

    kind = "MalformedModelResponse"
    status_code = status.HTTP_502_BAD_GATEWAY
