r"""Retry package implementing the bounded retry loop.

Public API:
    - RetryConfig: Configuration for retry behavior
    - RetryState: State of one call across its attempts
    - RetryDecider: Logic for deciding whether to retry
    - RetryExecutor: Synchronous retry executor
"""

from __future__ import annotations

__all__ = ["RetryConfig", "RetryDecider", "RetryExecutor", "RetryState"]

from opinionated_http.retry.config import RetryConfig, RetryState
from opinionated_http.retry.decider import RetryDecider
from opinionated_http.retry.executor import RetryExecutor
