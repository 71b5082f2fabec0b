r"""Error taxonomy for opinionated HTTP requests.

All errors raised by this package derive from ``OpinionatedHttpError``.
Errors that happen at runtime (serialization, transport, status failures)
are never surfaced to callers directly: the client converts them into the
caller-chosen error class and attaches the typed error below as
``__cause__``. ``ConstructionError`` and ``ConfigurationError`` describe
programming mistakes and are raised as-is.
"""

from __future__ import annotations

__all__ = [
    "ApplicationStatusError",
    "ConfigurationError",
    "ConstructionError",
    "DeserializationError",
    "OpinionatedHttpError",
    "RetryableStatusError",
    "SerializationError",
    "StatusError",
    "TransportError",
]

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx


class OpinionatedHttpError(Exception):
    """Base class for all errors raised by opinionated_http.

    Args:
        message: Human readable description of the failure.
        cause: Optional exception that triggered this error.

    Example:
        ```pycon
        >>> from opinionated_http.exceptions import OpinionatedHttpError
        >>> err = OpinionatedHttpError("boom")
        >>> str(err)
        'boom'
        >>> err.cause is None
        True

        ```
    """

    def __init__(self, message: str, *, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause


class ConstructionError(OpinionatedHttpError, ValueError):
    """Raised when a request cannot be built from the supplied fields."""


class ConfigurationError(OpinionatedHttpError, ValueError):
    """Raised for invalid or missing configuration, or an unknown body
    format."""


class SerializationError(OpinionatedHttpError):
    """Raised when a request body cannot be serialized."""


class DeserializationError(OpinionatedHttpError):
    """Raised when a response body cannot be parsed."""


class TransportError(OpinionatedHttpError):
    """Raised when the transport fails before any HTTP response is
    received.

    Args:
        message: Human readable description of the failure.
        method: The HTTP method of the failed request.
        action: The action name of the failed request.
        cause: The exception raised by the transport.
    """

    def __init__(
        self,
        message: str,
        *,
        method: str,
        action: str,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, cause=cause)
        self.method = method
        self.action = action


class StatusError(OpinionatedHttpError):
    """Base class for failures described by an HTTP response status.

    Args:
        message: Human readable description of the failure.
        method: The HTTP method of the request.
        action: The action name of the request.
        status_code: The HTTP status code of the response.
        response: The HTTP response, if available.
    """

    def __init__(
        self,
        message: str,
        *,
        method: str,
        action: str,
        status_code: int,
        response: httpx.Response | None = None,
    ) -> None:
        super().__init__(message)
        self.method = method
        self.action = action
        self.status_code = status_code
        self.response = response


class RetryableStatusError(StatusError):
    """Raised when a retryable status persists after all retries."""


class ApplicationStatusError(StatusError):
    """Raised when a response has a non-success, non-retryable status."""
