r"""Configuration and state dataclasses for retry behavior."""

from __future__ import annotations

__all__ = ["RetryConfig", "RetryState"]

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from opinionated_http.core.config import (
    DEFAULT_RETRY_COUNT,
    DEFAULT_RETRY_INTERVAL,
    DEFAULT_RETRY_MULTIPLIER,
    DEFAULT_WARN_TIMEOUT,
    RETRY_STATUS_CODES,
)

if TYPE_CHECKING:
    import httpx

    from opinionated_http.core.config import ClientConfig


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for retry behavior.

    Attributes:
        retry_count: Maximum number of retries.
        retry_interval: Base interval in seconds between retries.
        retry_multiplier: Growth factor between retry intervals.
        retry_codes: HTTP status codes that trigger retries.
        warn_timeout: Attempts slower than this many seconds are logged
            as a warning. ``0`` disables the warning.
    """

    retry_count: int = DEFAULT_RETRY_COUNT
    retry_interval: float = DEFAULT_RETRY_INTERVAL
    retry_multiplier: float = DEFAULT_RETRY_MULTIPLIER
    retry_codes: tuple[int, ...] = RETRY_STATUS_CODES
    warn_timeout: float = DEFAULT_WARN_TIMEOUT

    @classmethod
    def from_client_config(cls, config: ClientConfig) -> RetryConfig:
        """Extract the retry settings of a client configuration."""
        return cls(
            retry_count=config.retry_count,
            retry_interval=config.retry_interval,
            retry_multiplier=config.retry_multiplier,
            retry_codes=config.retry_codes,
            warn_timeout=config.warn_timeout,
        )


@dataclass
class RetryState:
    """Mutable state of one call across its attempts.

    Attributes:
        action: Action name of the call.
        verb: HTTP method of the call.
        transport_request: The request sent on every attempt.
        attempt_count: Number of retries performed so far.
    """

    action: str
    verb: str
    transport_request: httpx.Request
    attempt_count: int = field(default=0)
