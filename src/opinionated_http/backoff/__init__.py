r"""Backoff strategies for retry delays.

This package provides the strategies used to calculate the delay
inserted between two retry attempts.
"""

from __future__ import annotations

__all__ = ["BaseBackoffStrategy", "ExponentialBackoff"]

from opinionated_http.backoff.base import BaseBackoffStrategy
from opinionated_http.backoff.exponential import ExponentialBackoff
