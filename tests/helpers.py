r"""Shared test doubles for the client, the retry executor and the
response wrapper."""

from __future__ import annotations

__all__ = [
    "BASE_URL",
    "FakeLogger",
    "FakeTransport",
    "LogEvent",
    "ServiceError",
    "create_response",
]

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import httpx

if TYPE_CHECKING:
    from collections.abc import Generator, Iterable

BASE_URL = "https://api.example.com"


class ServiceError(Exception):
    """Caller-chosen error class used by the tests."""


@dataclass
class LogEvent:
    """One event recorded by ``FakeLogger``."""

    level: str
    message: str
    fields: dict[str, Any] = field(default_factory=dict)


class FakeLogger:
    """In-memory ``Logger`` recording every event.

    Args:
        trace: Whether ``is_trace_enabled`` returns True.
    """

    def __init__(self, trace: bool = False) -> None:
        self.events: list[LogEvent] = []
        self.trace_enabled = trace

    def _record(self, level: str, message: str, fields: dict[str, Any]) -> None:
        self.events.append(LogEvent(level=level, message=message, fields=fields))

    def trace(self, message: str, **fields: Any) -> None:
        self._record("trace", message, fields)

    def debug(self, message: str, **fields: Any) -> None:
        self._record("debug", message, fields)

    def info(self, message: str, **fields: Any) -> None:
        self._record("info", message, fields)

    def warning(self, message: str, **fields: Any) -> None:
        self._record("warning", message, fields)

    def error(self, message: str, *, exception: BaseException | None = None, **fields: Any) -> None:
        self._record("error", message, {"exception": exception, **fields})

    def is_trace_enabled(self) -> bool:
        return self.trace_enabled

    def is_debug_enabled(self) -> bool:
        return True

    @contextmanager
    def benchmark_info(
        self, message: str, *, metric: str, payload: dict[str, Any] | None = None
    ) -> Generator[None, None, None]:
        yield
        self._record("info", message, {"metric": metric, "duration": 0.0, "payload": payload})

    def at(self, level: str) -> list[LogEvent]:
        """Return the events logged at ``level``."""
        return [event for event in self.events if event.level == level]


def create_response(
    status_code: int = 200,
    *,
    text: str | None = None,
    json: Any = None,
    headers: dict[str, str] | None = None,
) -> httpx.Response:
    """Create a real ``httpx.Response`` with its body already read."""
    kwargs: dict[str, Any] = {"headers": headers}
    if json is not None:
        kwargs["json"] = json
    elif text is not None:
        kwargs["text"] = text
    return httpx.Response(status_code, **kwargs)


class FakeTransport:
    """Transport replaying a scripted sequence of outcomes.

    Each outcome is either an ``httpx.Response`` (or a status code) that
    is returned, or an exception that is raised. The last outcome is
    repeated once the sequence is exhausted.

    Args:
        outcomes: The scripted outcomes. Defaults to a single 200 OK.
    """

    def __init__(self, outcomes: Iterable[httpx.Response | int | Exception] = (200,)) -> None:
        self.outcomes = [
            create_response(outcome) if isinstance(outcome, int) else outcome for outcome in outcomes
        ]
        self.requests: list[httpx.Request] = []
        self.closed = False

    def script(self, *outcomes: httpx.Response | int | Exception) -> FakeTransport:
        """Replace the scripted outcomes."""
        self.outcomes = [
            create_response(outcome) if isinstance(outcome, int) else outcome for outcome in outcomes
        ]
        return self

    def execute(self, request: httpx.Request) -> httpx.Response:
        index = min(len(self.requests), len(self.outcomes) - 1)
        self.requests.append(request)
        outcome = self.outcomes[index]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def close(self) -> None:
        self.closed = True
