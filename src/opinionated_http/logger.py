r"""Leveled logger with benchmarked spans.

The client never talks to ``logging`` directly: every event goes through
a ``Logger``, so callers can plug in their own implementation (or an
in-memory fake in tests). ``StdlibLogger`` is the default implementation
and forwards everything to a standard ``logging.Logger``, carrying the
structured fields (``metric``, ``duration``, ``payload``, ...) through
``extra``.
"""

from __future__ import annotations

__all__ = ["TRACE", "Logger", "StdlibLogger"]

import logging
import time
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from opinionated_http.utils.structured_logging import log_structured

if TYPE_CHECKING:
    from collections.abc import Generator, Iterator

# More verbose than DEBUG, used for transport diagnostics
TRACE = 5
logging.addLevelName(TRACE, "TRACE")


@runtime_checkable
class Logger(Protocol):
    """Protocol for the logger used by the client."""

    def trace(self, message: str, **fields: Any) -> None: ...

    def debug(self, message: str, **fields: Any) -> None: ...

    def info(self, message: str, **fields: Any) -> None: ...

    def warning(self, message: str, **fields: Any) -> None: ...

    def error(
        self, message: str, *, exception: BaseException | None = None, **fields: Any
    ) -> None: ...

    def is_trace_enabled(self) -> bool: ...

    def is_debug_enabled(self) -> bool: ...

    def benchmark_info(
        self, message: str, *, metric: str, payload: dict[str, Any] | None = None
    ) -> Iterator[None]: ...


class StdlibLogger:
    """Logger implementation backed by the standard ``logging`` module.

    Args:
        logger: The ``logging.Logger`` to write to, or its name.

    Example:
        ```pycon
        >>> import logging
        >>> from opinionated_http.logger import StdlibLogger
        >>> logger = StdlibLogger("doctest.client")
        >>> logger.name
        'doctest.client'
        >>> with logger.benchmark_info("HTTP GET: lookup", metric="FakeService/lookup"):
        ...     pass
        ...

        ```
    """

    def __init__(self, logger: logging.Logger | str) -> None:
        self._logger = logging.getLogger(logger) if isinstance(logger, str) else logger

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"

    @property
    def name(self) -> str:
        return self._logger.name

    def trace(self, message: str, **fields: Any) -> None:
        log_structured(self._logger, TRACE, message, **fields)

    def debug(self, message: str, **fields: Any) -> None:
        log_structured(self._logger, logging.DEBUG, message, **fields)

    def info(self, message: str, **fields: Any) -> None:
        log_structured(self._logger, logging.INFO, message, **fields)

    def warning(self, message: str, **fields: Any) -> None:
        log_structured(self._logger, logging.WARNING, message, **fields)

    def error(self, message: str, *, exception: BaseException | None = None, **fields: Any) -> None:
        """Log an error, attaching the traceback of ``exception`` if given."""
        log_structured(self._logger, logging.ERROR, message, exc_info=exception, **fields)

    def is_trace_enabled(self) -> bool:
        return self._logger.isEnabledFor(TRACE)

    def is_debug_enabled(self) -> bool:
        return self._logger.isEnabledFor(logging.DEBUG)

    @contextmanager
    def benchmark_info(
        self, message: str, *, metric: str, payload: dict[str, Any] | None = None
    ) -> Generator[None, None, None]:
        """Measure the enclosed block and log its duration at info level.

        The event carries ``metric`` and ``duration`` (milliseconds). If
        the block raises, nothing is logged here and the exception
        propagates: the caller owns failure logging.

        Args:
            message: Log message.
            metric: Metric name the duration is recorded under.
            payload: Optional structured payload attached to the event.
        """
        start = time.perf_counter()
        yield
        duration = (time.perf_counter() - start) * 1_000
        self.info(message, metric=metric, duration=round(duration, 3), payload=payload or None)
