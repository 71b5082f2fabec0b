r"""Retry decision logic based on response status codes."""

from __future__ import annotations

__all__ = ["RetryDecider"]

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx

    from opinionated_http.retry.config import RetryState


class RetryDecider:
    """Decides whether a response should be retried.

    Only the status code is considered: transport exceptions are never
    retried, and neither is 500 unless it is explicitly configured.

    Args:
        retry_codes: Retryable HTTP status codes.
        retry_count: Maximum number of retries.

    Example:
        ```pycon
        >>> import httpx
        >>> from opinionated_http.retry import RetryDecider
        >>> decider = RetryDecider(retry_codes=(502, 503, 504), retry_count=11)
        >>> decider.is_retryable(httpx.Response(503))
        True
        >>> decider.is_retryable(httpx.Response(500))
        False

        ```
    """

    def __init__(self, retry_codes: tuple[int, ...], retry_count: int) -> None:
        self.retry_codes = frozenset(retry_codes)
        self.retry_count = retry_count

    def is_retryable(self, response: httpx.Response) -> bool:
        """Return whether the status code of ``response`` is retryable."""
        return response.status_code in self.retry_codes

    def has_retries_left(self, state: RetryState) -> bool:
        """Return whether another retry is allowed for ``state``."""
        return state.attempt_count < self.retry_count
