r"""Parameter validation utilities for client configuration.

This module provides validation and parsing functions used to make sure
the resolved client configuration meets the required constraints before
it is used to build the transport and the retry executor.
"""

from __future__ import annotations

__all__ = ["parse_status_codes", "validate_retry_params", "validate_timeouts"]

from collections.abc import Iterable

from opinionated_http.exceptions import ConfigurationError


def parse_status_codes(value: str | int | Iterable[str | int]) -> tuple[int, ...]:
    """Parse HTTP status codes into a tuple of integers.

    Args:
        value: A comma separated string (e.g. ``"502,503,504"``), a single
            status code, or an iterable of status codes given as strings
            or integers.

    Returns:
        The status codes as a tuple of integers, in the order supplied.

    Raises:
        ConfigurationError: If a code is not an integer between 100 and 599.

    Example:
        ```pycon
        >>> from opinionated_http.core.validation import parse_status_codes
        >>> parse_status_codes("502, 503,504")
        (502, 503, 504)
        >>> parse_status_codes([429, "503"])
        (429, 503)

        ```
    """
    if isinstance(value, int):
        items: Iterable[str | int] = [value]
    elif isinstance(value, str):
        items = [item for item in value.split(",") if item.strip()]
    else:
        items = value

    codes = []
    for item in items:
        try:
            code = int(str(item).strip())
        except ValueError as exc:
            msg = f"Invalid HTTP status code: {item!r}"
            raise ConfigurationError(msg, cause=exc) from exc
        if not 100 <= code <= 599:
            msg = f"HTTP status code must be between 100 and 599, got {code}"
            raise ConfigurationError(msg)
        codes.append(code)
    return tuple(codes)


def validate_retry_params(
    retry_count: int,
    retry_interval: float,
    retry_multiplier: float,
) -> None:
    """Validate retry parameters.

    Args:
        retry_count: Maximum number of retries. Must be >= 0. A value of 0
            means no retries (only the initial attempt).
        retry_interval: Base interval in seconds between retries. Must be >= 0.
        retry_multiplier: Growth factor between consecutive retry intervals.
            Must be >= 1.

    Raises:
        ConfigurationError: If a parameter is out of range.

    Example:
        ```pycon
        >>> from opinionated_http.core.validation import validate_retry_params
        >>> validate_retry_params(retry_count=11, retry_interval=0.01, retry_multiplier=1.8)

        ```
    """
    if retry_count < 0:
        msg = f"retry_count must be >= 0, got {retry_count}"
        raise ConfigurationError(msg)
    if retry_interval < 0:
        msg = f"retry_interval must be >= 0, got {retry_interval}"
        raise ConfigurationError(msg)
    if retry_multiplier < 1:
        msg = f"retry_multiplier must be >= 1, got {retry_multiplier}"
        raise ConfigurationError(msg)


def validate_timeouts(**timeouts: float) -> None:
    """Validate that every timeout is strictly positive.

    Args:
        **timeouts: Timeout values in seconds, keyed by their name.

    Raises:
        ConfigurationError: If a timeout is <= 0.

    Example:
        ```pycon
        >>> from opinionated_http.core.validation import validate_timeouts
        >>> validate_timeouts(open_timeout=10.0, read_timeout=5)

        ```
    """
    for name, timeout in timeouts.items():
        if timeout <= 0:
            msg = f"{name} must be > 0, got {timeout}"
            raise ConfigurationError(msg)
