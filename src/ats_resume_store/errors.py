"""Error taxonomy for backend access.

Exception Hierarchy:
    ResumeStoreError (base)
    ├── ConfigurationError - invalid settings values
    ├── TransientNetworkError - retryable (timeouts, refused connections, 502/503/504)
    └── PermanentRequestError - not retryable (validation, auth, constraint errors)
        └── NotFoundError - a by-id lookup returned nothing

``classify_error`` decides whether an arbitrary exception raised by a
transport is worth retrying.
"""

from __future__ import annotations

import asyncio
from typing import Any

import requests
from sqlalchemy.exc import DisconnectionError, OperationalError

__all__ = [
    "ConfigurationError",
    "NotFoundError",
    "PermanentRequestError",
    "ResumeStoreError",
    "TransientNetworkError",
    "TRANSIENT_STATUS_CODES",
    "classify_error",
    "error_from_status",
    "is_retryable",
]

TRANSIENT_STATUS_CODES = frozenset({502, 503, 504})

# Lowercase substrings that mark a message as a transient network failure.
_TRANSIENT_MARKERS = (
    "connection refused",
    "connection reset",
    "timeout",
    "timed out",
    "network",
    "failed to fetch",
    "fetch failed",
    "bad gateway",
    "service unavailable",
    "gateway timeout",
    "502",
    "503",
    "504",
)

_TRANSIENT_TYPES: tuple[type[BaseException], ...] = (
    requests.ConnectionError,
    requests.Timeout,
    ConnectionError,
    TimeoutError,
    asyncio.TimeoutError,
    OperationalError,
    DisconnectionError,
)


class ResumeStoreError(Exception):
    """Base exception for all resume store errors.

    Attributes:
        message: Human-readable error message.
        status_code: HTTP status reported by the backend, if any.
        code: Backend-specific error code, if any.
        details: Additional context about the error.
    """

    default_message = "Backend request failed"

    def __init__(
        self,
        message: str | None = None,
        *,
        status_code: int | None = None,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.default_message
        self.status_code = status_code
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(message={self.message!r}, "
            f"status_code={self.status_code!r}, code={self.code!r})"
        )


class ConfigurationError(ResumeStoreError):
    """Raised when a configuration value cannot be parsed."""

    default_message = "Invalid configuration"


class TransientNetworkError(ResumeStoreError):
    """A failure that may succeed if the same request is retried."""

    default_message = "Transient network failure"


class PermanentRequestError(ResumeStoreError):
    """A failure that retrying the same request cannot fix."""

    default_message = "Request rejected by backend"


class NotFoundError(PermanentRequestError):
    """Raised when a record looked up by identifier does not exist."""

    default_message = "Resume not found"


def error_from_status(
    status_code: int,
    message: str,
    *,
    code: str | None = None,
    details: dict[str, Any] | None = None,
) -> ResumeStoreError:
    """Build the taxonomy error matching an HTTP status code."""
    if status_code in TRANSIENT_STATUS_CODES or status_code == 408:
        cls: type[ResumeStoreError] = TransientNetworkError
    elif status_code == 404:
        cls = NotFoundError
    else:
        cls = PermanentRequestError
    return cls(message, status_code=status_code, code=code, details=details)


def is_retryable(error: BaseException) -> bool:
    """Return True when ``error`` is a transient network failure."""
    if isinstance(error, TransientNetworkError):
        return True
    if isinstance(error, ResumeStoreError):
        if error.status_code is not None:
            return error.status_code in TRANSIENT_STATUS_CODES
        return False
    if isinstance(error, _TRANSIENT_TYPES):
        return True
    message = str(error).lower()
    return any(marker in message for marker in _TRANSIENT_MARKERS)


def classify_error(error: BaseException) -> ResumeStoreError:
    """Wrap a foreign exception into the taxonomy.

    Taxonomy errors are returned unchanged. Anything else becomes a
    ``TransientNetworkError`` or ``PermanentRequestError`` with the original
    exception chained as ``__cause__``.
    """
    if isinstance(error, ResumeStoreError):
        return error
    cls = TransientNetworkError if is_retryable(error) else PermanentRequestError
    wrapped = cls(str(error) or type(error).__name__)
    wrapped.__cause__ = error
    return wrapped
