r"""Structured logging utilities for machine-readable log output.

Every event emitted by the client carries structured fields such as
``metric``, ``duration`` and ``payload``. These fields travel on the
``logging.LogRecord`` through the ``extra`` mechanism; the
``StructuredFormatter`` renders them, together with the standard record
fields, as one JSON object per line.

Example:
    Send the client logs to stderr as JSON lines:

    ```python
    import logging
    from opinionated_http.utils.structured_logging import StructuredFormatter

    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter())

    logger = logging.getLogger("opinionated_http")
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    ```

    Tag every log line of a unit of work with a correlation ID:

    ```python
    from opinionated_http.utils.structured_logging import correlation_id

    with correlation_id("request-123"):
        client.get(action="lookup")
    ```
"""

from __future__ import annotations

__all__ = [
    "StructuredFormatter",
    "clear_correlation_id",
    "correlation_id",
    "get_correlation_id",
    "log_structured",
    "set_correlation_id",
]

import contextvars
import json
import logging
import time
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Generator

_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "opinionated_http_correlation_id", default=None
)

# Attributes set by logging.LogRecord itself, never rendered as extra fields
_RECORD_ATTRIBUTES = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None)).keys()
) | {"message", "asctime", "taskName"}


def get_correlation_id() -> str | None:
    """Get the correlation ID of the current context.

    Returns:
        The current correlation ID, or None if not set.

    Example:
        ```pycon
        >>> from opinionated_http.utils.structured_logging import (
        ...     clear_correlation_id,
        ...     get_correlation_id,
        ...     set_correlation_id,
        ... )
        >>> set_correlation_id("req-123")
        >>> get_correlation_id()
        'req-123'
        >>> clear_correlation_id()

        ```
    """
    return _correlation_id.get()


def set_correlation_id(value: str) -> None:
    """Set the correlation ID for the current context.

    The ID lives in a context variable, so it is local to the current
    thread or task.

    Args:
        value: The correlation ID (e.g. an inbound request ID).
    """
    _correlation_id.set(value)


def clear_correlation_id() -> None:
    """Clear the correlation ID of the current context."""
    _correlation_id.set(None)


@contextmanager
def correlation_id(value: str) -> Generator[str, None, None]:
    """Set a correlation ID for the duration of a ``with`` block.

    The previous correlation ID is restored on exit.

    Args:
        value: The correlation ID.

    Example:
        ```pycon
        >>> from opinionated_http.utils.structured_logging import (
        ...     correlation_id,
        ...     get_correlation_id,
        ... )
        >>> with correlation_id("batch-7"):
        ...     get_correlation_id()
        ...
        'batch-7'
        >>> get_correlation_id() is None
        True

        ```
    """
    token = _correlation_id.set(value)
    try:
        yield value
    finally:
        _correlation_id.reset(token)


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging.

    Standard fields in the JSON output:
        - timestamp: ISO 8601 UTC timestamp with milliseconds
        - level: Log level name (TRACE, DEBUG, INFO, WARNING, ERROR, ...)
        - logger: Logger name
        - message: Log message
        - correlation_id: Correlation ID, only when set
        - exception: Formatted traceback, only when present

    Any field added through the ``extra`` argument of a logging call
    (``metric``, ``duration``, ``payload``, ...) is included as well.
    Values that are not JSON serializable are rendered with ``repr``.

    Example:
        ```pycon
        >>> import json
        >>> import logging
        >>> from io import StringIO
        >>> from opinionated_http.utils.structured_logging import StructuredFormatter
        >>> stream = StringIO()
        >>> handler = logging.StreamHandler(stream)
        >>> handler.setFormatter(StructuredFormatter())
        >>> logger = logging.getLogger("doctest.structured")
        >>> logger.addHandler(handler)
        >>> logger.setLevel(logging.INFO)
        >>> logger.info("HTTP GET: lookup", extra={"metric": "FakeService/lookup"})
        >>> json.loads(stream.getvalue())["metric"]
        'FakeService/lookup'

        ```
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as a JSON object.

        Args:
            record: The log record to format.

        Returns:
            JSON-formatted log line.
        """
        data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        current_id = get_correlation_id()
        if current_id is not None:
            data["correlation_id"] = current_id

        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRIBUTES:
                data[key] = value

        return json.dumps(data, default=repr)

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:  # noqa: N802
        """Format the record creation time as ISO 8601 in UTC.

        Args:
            record: The log record.
            datefmt: Ignored, the format is always ISO 8601.

        Returns:
            ISO 8601 formatted timestamp.
        """
        return (
            time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime(record.created))
            + f".{int(record.msecs):03d}Z"
        )


def log_structured(
    logger: logging.Logger,
    level: int,
    message: str,
    *,
    exc_info: BaseException | None = None,
    **extra: Any,
) -> None:
    """Log a message with structured fields.

    ``None`` valued fields are dropped so the output only carries the
    fields that are meaningful for the event.

    Args:
        logger: Logger to use.
        level: Log level (e.g. ``logging.INFO``).
        message: Log message.
        exc_info: Optional exception whose traceback is attached.
        **extra: Structured fields to attach to the record.

    Example:
        ```pycon
        >>> import logging
        >>> from opinionated_http.utils.structured_logging import log_structured
        >>> logger = logging.getLogger("doctest.log_structured")
        >>> log_structured(logger, logging.INFO, "done", metric="FakeService/lookup", payload=None)

        ```
    """
    fields = {key: value for key, value in extra.items() if value is not None}
    logger.log(level, message, exc_info=exc_info, extra=fields)
