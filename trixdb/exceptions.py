"""
Exception classes for the TrixDB client.

Every failure surfaced by the request pipeline is a ``TrixDBError``. The
``kind`` attribute tells callers what went wrong so they can decide their own
remediation without matching on HTTP status codes.
"""

from datetime import datetime, timedelta
from enum import Enum


class ErrorKind(str, Enum):
    """Classification of a failed request"""

    NETWORK = "network"
    TIMEOUT = "timeout"
    AUTHENTICATION = "authentication"
    PERMISSION = "permission"
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    RATE_LIMIT = "rate_limit"
    SERVER = "server"
    API = "api"
    CANCELLED = "cancelled"
    STREAM_NOT_SEEKABLE = "stream_not_seekable"
    CLOSED = "closed"
    CONFIGURATION = "configuration"


RETRYABLE_KINDS = frozenset(
    {
        ErrorKind.NETWORK,
        ErrorKind.TIMEOUT,
        ErrorKind.RATE_LIMIT,
        ErrorKind.SERVER,
    }
)

_STATUS_KINDS = {
    401: ErrorKind.AUTHENTICATION,
    403: ErrorKind.PERMISSION,
    404: ErrorKind.NOT_FOUND,
    422: ErrorKind.VALIDATION,
    429: ErrorKind.RATE_LIMIT,
}


def kind_for_status(status_code: int) -> ErrorKind:
    """Map a non-2xx HTTP status code to its error kind."""
    if status_code in _STATUS_KINDS:
        return _STATUS_KINDS[status_code]
    if status_code >= 500:
        return ErrorKind.SERVER
    return ErrorKind.API


class TrixDBError(Exception):
    """Base exception for all TrixDB client errors.

    Kind-specific details live in optional attributes:

    - ``retry_after_seconds`` / ``reset_at`` for ``RATE_LIMIT``
    - ``field_errors`` for ``VALIDATION`` (``None`` when the server sent none)
    - ``timeout`` for ``TIMEOUT``
    - ``resource_id`` for ``NOT_FOUND`` when the caller knows it
    """

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.API,
        *,
        status_code: int | None = None,
        error_code: str | None = None,
        request_id: str | None = None,
        retry_after_seconds: float | None = None,
        reset_at: datetime | None = None,
        field_errors: dict[str, list[str]] | None = None,
        timeout: timedelta | None = None,
        resource_id: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.status_code = status_code
        self.error_code = error_code
        self.request_id = request_id
        self.retry_after_seconds = retry_after_seconds
        self.reset_at = reset_at
        self.field_errors = field_errors
        self.timeout = timeout
        self.resource_id = resource_id

    @property
    def retryable(self) -> bool:
        """Whether the pipeline may re-attempt a request that failed this way."""
        return self.kind in RETRYABLE_KINDS

    def __repr__(self) -> str:
        return (
            f"TrixDBError(kind={self.kind.value!r}, message={self.message!r}, "
            f"status_code={self.status_code!r}, request_id={self.request_id!r})"
        )


class TrixDBConfigError(TrixDBError, ValueError):
    """Raised when client configuration cannot be built from the environment.

    Subclassing ``ValueError`` keeps it catchable alongside pydantic's own
    validation errors for direct construction.
    """

    def __init__(self, message: str):
        super().__init__(message, ErrorKind.CONFIGURATION)
