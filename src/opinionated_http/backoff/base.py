r"""Abstract base class for backoff strategies."""

from __future__ import annotations

__all__ = ["BaseBackoffStrategy"]

from abc import ABC, abstractmethod


class BaseBackoffStrategy(ABC):
    """Abstract base class for backoff strategies.

    A backoff strategy determines how long to wait before a retry based
    on the retry number.
    """

    @abstractmethod
    def calculate(self, retry: int) -> float:
        """Calculate the delay before a given retry.

        Args:
            retry: The retry number (1-indexed). For example, retry=1 is
                the first retry, retry=2 is the second retry, etc.

        Returns:
            The delay in seconds to wait before the retry.
        """
