"""Maps failed GitHub responses to typed `ApiError`s with user-facing messages."""

import logging
from typing import Any, Mapping, Optional

from gitfolio.domain.models.errors import ApiError, ErrorKind

logger = logging.getLogger(__name__)

NETWORK_ERROR_STATUS = 0

USER_MESSAGES = {
    ErrorKind.UNAUTHORIZED: "GitHub token is invalid or expired. Please check your token and try again.",
    ErrorKind.FORBIDDEN: "Access forbidden. Please check your token permissions.",
    ErrorKind.NOT_FOUND: "Repository or resource not found. Please check the repository name and your access permissions.",
    ErrorKind.UNPROCESSABLE_ENTITY: "Invalid request. Please check your input parameters.",
    ErrorKind.NETWORK_ERROR: "Network connection failed. Please check your internet connection and try again.",
    ErrorKind.SERVER_ERROR: "GitHub servers are experiencing issues. Please try again later.",
}
RATE_LIMIT_EXCEEDED_MESSAGE = "GitHub API rate limit exceeded. Please wait a few minutes before trying again."
TOO_MANY_REQUESTS_MESSAGE = "Too many requests. Please wait a moment before trying again."
UNKNOWN_ERROR_MESSAGE = "An unexpected error occurred."


def classify_status(status: int, message: str = "") -> ErrorKind:
    """Returns the error kind for an HTTP status (0 means no response)."""
    if status == 401:
        return ErrorKind.UNAUTHORIZED
    if status == 403:
        return ErrorKind.RATE_LIMITED if "rate limit" in message.lower() else ErrorKind.FORBIDDEN
    if status == 404:
        return ErrorKind.NOT_FOUND
    if status == 422:
        return ErrorKind.UNPROCESSABLE_ENTITY
    if status == 429:
        return ErrorKind.RATE_LIMITED
    if status == NETWORK_ERROR_STATUS:
        return ErrorKind.NETWORK_ERROR
    if status >= 500:
        return ErrorKind.SERVER_ERROR
    return ErrorKind.UNKNOWN


def is_retryable_status(status: int) -> bool:
    """Rate limit (429), server errors and network failures may succeed on retry."""
    return status == 429 or status >= 500 or status == NETWORK_ERROR_STATUS


def user_friendly_message(kind: ErrorKind, status: int, message: str) -> str:
    if kind is ErrorKind.RATE_LIMITED:
        return TOO_MANY_REQUESTS_MESSAGE if status == 429 else RATE_LIMIT_EXCEEDED_MESSAGE
    if kind is ErrorKind.UNKNOWN:
        return message or UNKNOWN_ERROR_MESSAGE
    return USER_MESSAGES[kind]


def classify_error(status: int, body: Optional[Mapping[str, Any]] = None, reason: str = "") -> ApiError:
    """Builds the classified error for a failed response.

    Args:
        status: HTTP status code, or 0 when no response was received.
        body: Parsed JSON error body, if any ('message', 'documentation_url').
        reason: HTTP reason phrase or exception text used when the body has no message.

    Returns:
        An ApiError whose `message` is meant for end users and whose
        `original_message` keeps the upstream text.
    """
    body = body if isinstance(body, Mapping) else {}
    original = body.get("message") or (f"HTTP {status}: {reason}" if status else reason) or ""
    original = str(original)
    kind = classify_status(status, original)
    error = ApiError(
        kind=kind,
        status=status,
        message=user_friendly_message(kind, status, original),
        documentation_url=body.get("documentation_url"),
        retryable=is_retryable_status(status),
        original_message=original,
    )
    logger.debug(f"Classified HTTP {status} as {kind.name} (retryable={error.retryable}): {original}")
    return error
