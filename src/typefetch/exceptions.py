"""Exception hierarchy for typefetch.

All exceptions inherit from :class:`TypeFetchError`, which carries the
error ``message``, an optional HTTP ``status``, the ``original_error`` it
wraps, and an ``exit_code`` attribute mapped to a constant from
:mod:`typefetch.exit_codes`.

Errors are raised only by the body helpers in :mod:`typefetch.codec`
(before any network attempt) and by the transport adapter.  The public
client methods never raise: every failure is returned as the ``error`` of
a :class:`~typefetch.models.Result`.

Subclass hierarchy::

    TypeFetchError (exit 1)
    +-- InvalidBodyError              (exit 2)
    +-- UnsupportedContentTypeError   (exit 2)
    +-- SerializationError            (exit 2)
    +-- TransportError                (exit 6)
    +-- HttpError                     (exit 5)
    +-- MaxRetriesExceededError       (exit 6)
    +-- ConfigError                   (exit 1)
"""

from __future__ import annotations

from typing import Optional

from typefetch.exit_codes import (
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_HTTP_ERROR,
    EXIT_INVALID_USAGE,
)


class TypeFetchError(Exception):
    """Base exception for all typefetch errors.

    Args:
        message: Human-readable error description.
        status: HTTP status code associated with the error, if any.
        original_error: The underlying exception this error wraps.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        original_error: Optional[BaseException] = None,
        exit_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status = status
        self.original_error = original_error
        if exit_code is not None:
            self.exit_code = exit_code

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, status={self.status!r})"


class InvalidBodyError(TypeFetchError):
    """Raised when a content wrapper is malformed (missing type or data, wrong payload shape)."""

    exit_code = EXIT_INVALID_USAGE


class UnsupportedContentTypeError(TypeFetchError):
    """Raised when a content wrapper names a type the codec does not know."""

    exit_code = EXIT_INVALID_USAGE


class SerializationError(TypeFetchError):
    """Raised when a body cannot be encoded (circular JSON, unencodable values)."""

    exit_code = EXIT_INVALID_USAGE


class TransportError(TypeFetchError):
    """Raised by the transport on network-level failures (connect, read, timeout).

    The executor retries these, along with any other exception raised
    while attempting (for example a body that does not decode).
    """

    exit_code = EXIT_CONNECTION_ERROR


class HttpError(TypeFetchError):
    """Returned when the server answers with a non-2xx status.

    ``message`` holds the response body text and ``status`` the HTTP status.
    """

    exit_code = EXIT_HTTP_ERROR


class MaxRetriesExceededError(TypeFetchError):
    """Returned once every attempt in the retry budget has failed."""

    exit_code = EXIT_CONNECTION_ERROR


class ConfigError(TypeFetchError):
    """Raised for invalid client configuration values or environment variables."""

    exit_code = EXIT_GENERIC_FAILURE
