"""Domain exceptions raised by the GitHub client.

Every failure that reaches a caller is a `GitfolioError`. API failures carry a
classified `ErrorKind` and a message rewritten for end users; validation
failures identify the offending record.
"""

import enum
from typing import Any, Mapping, Optional


class ErrorKind(enum.Enum):
    """Classification of a failed API call."""
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    UNPROCESSABLE_ENTITY = "unprocessable_entity"
    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"
    NETWORK_ERROR = "network_error"
    UNKNOWN = "unknown"


RETRYABLE_KINDS = frozenset({ErrorKind.RATE_LIMITED, ErrorKind.SERVER_ERROR, ErrorKind.NETWORK_ERROR})


class GitfolioError(Exception):
    """Base class for all errors raised by gitfolio."""
    pass


class ApiError(GitfolioError):
    """Terminal outcome of a failed request against the GitHub API.

    Attributes are read-only once constructed.
    """

    def __init__(
        self,
        kind: ErrorKind,
        status: int,
        message: str,
        documentation_url: Optional[str] = None,
        retryable: Optional[bool] = None,
        original_message: Optional[str] = None,
    ):
        self._kind = kind
        self._status = status
        self._message = message
        self._documentation_url = documentation_url
        self._retryable = kind in RETRYABLE_KINDS if retryable is None else retryable
        self._original_message = original_message if original_message is not None else message
        super().__init__(message)

    @property
    def kind(self) -> ErrorKind:
        return self._kind

    @property
    def status(self) -> int:
        return self._status

    @property
    def message(self) -> str:
        return self._message

    @property
    def documentation_url(self) -> Optional[str]:
        return self._documentation_url

    @property
    def retryable(self) -> bool:
        return self._retryable

    @property
    def original_message(self) -> str:
        """Message as received from upstream, before rewriting."""
        return self._original_message

    def __repr__(self) -> str:
        return f"ApiError(kind={self._kind.name}, status={self._status}, message={self._message!r})"


class InvalidRecordError(GitfolioError):
    """Raised when a raw repository record fails the required-shape check."""

    def __init__(self, record: Any, reason: str = "missing or mistyped required fields"):
        self.record_id = record.get("id") if isinstance(record, Mapping) else None
        self.full_name = record.get("full_name") if isinstance(record, Mapping) else None
        self.reason = reason
        super().__init__(f"Invalid repository data ({self.identity}): {reason}")

    @property
    def identity(self) -> str:
        """Best available identification of the rejected record."""
        if self.full_name:
            return f"full_name={self.full_name!r}"
        if self.record_id is not None:
            return f"id={self.record_id!r}"
        return "unidentified record"


class RequestCancelledError(GitfolioError):
    """Raised when a caller-supplied cancellation event fires mid-request."""

    def __init__(self, endpoint: str):
        self.endpoint = endpoint
        super().__init__(f"Request to {endpoint} was cancelled")
