r"""Exponential backoff strategy."""

from __future__ import annotations

__all__ = ["ExponentialBackoff"]

from opinionated_http.backoff.base import BaseBackoffStrategy


class ExponentialBackoff(BaseBackoffStrategy):
    """Exponential backoff strategy where the first retry is immediate.

    Calculates delay as: ``base_delay * multiplier ** (retry - 1)`` for
    every retry after the first one. The first retry has no delay.

    Args:
        base_delay: The base delay in seconds (default: 0.01).
        multiplier: Growth factor between two consecutive delays
            (default: 1.8). Must be >= 1.

    Example:
        ```pycon
        >>> from opinionated_http.backoff import ExponentialBackoff
        >>> backoff = ExponentialBackoff(base_delay=0.5, multiplier=2.0)
        >>> backoff.calculate(1)  # First retry
        0.0
        >>> backoff.calculate(2)  # Second retry
        1.0
        >>> backoff.calculate(3)  # Third retry
        2.0

        ```
    """

    def __init__(self, base_delay: float = 0.01, multiplier: float = 1.8) -> None:
        if base_delay < 0:
            msg = f"base_delay must be non-negative, got {base_delay}"
            raise ValueError(msg)
        if multiplier < 1:
            msg = f"multiplier must be >= 1, got {multiplier}"
            raise ValueError(msg)

        self.base_delay = base_delay
        self.multiplier = multiplier

    def __repr__(self) -> str:
        return f"{type(self).__name__}(base_delay={self.base_delay}, multiplier={self.multiplier})"

    def calculate(self, retry: int) -> float:
        """Calculate exponential backoff delay.

        Args:
            retry: The retry number (1-indexed).

        Returns:
            0.0 for the first retry, otherwise
            ``base_delay * multiplier ** (retry - 1)``.
        """
        if retry <= 1:
            return 0.0
        return self.base_delay * self.multiplier ** (retry - 1)
