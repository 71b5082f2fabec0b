r"""Synchronous retry executor.

The executor submits a transport-ready request and retries it, with
exponential backoff, while the server answers with a retryable status.
Retries of one call are strictly sequential; the only suspension point
is the backoff sleep between two attempts.
"""

from __future__ import annotations

__all__ = ["RetryExecutor"]

import time
from typing import TYPE_CHECKING, NoReturn

import httpx

from opinionated_http.backoff import ExponentialBackoff
from opinionated_http.exceptions import RetryableStatusError, TransportError
from opinionated_http.retry.config import RetryState
from opinionated_http.retry.decider import RetryDecider

if TYPE_CHECKING:
    from opinionated_http.backoff import BaseBackoffStrategy
    from opinionated_http.logger import Logger
    from opinionated_http.retry.config import RetryConfig
    from opinionated_http.transport import Transport


class RetryExecutor:
    """Executes requests with bounded retries on retryable statuses.

    Outcomes of an attempt:

    - the transport raises ``httpx.RequestError`` or ``OSError``: the
      failure is logged and ``error_class`` is raised immediately,
      without retry;
    - the status is not retryable: the response is returned, whatever
      its status;
    - the status is retryable and retries are left: the executor waits
      for the backoff delay and sends the same request again;
    - the status is retryable and retries are exhausted: the failure is
      logged and ``error_class`` is raised.

    Args:
        config: Retry configuration.
        transport: Transport sending the requests.
        error_class: Exception class raised on failures. It is created
            with a single message argument.
        metric_prefix: Prefix of the metric names of logged events.
        logger: Logger receiving the attempt, retry and failure events.
        backoff: Optional backoff strategy. Defaults to
            ``ExponentialBackoff`` built from the configuration.

    Attributes:
        config: Retry configuration.
        decider: Retry decision logic.
        backoff: Backoff strategy computing the delay before each retry.
    """

    def __init__(
        self,
        config: RetryConfig,
        transport: Transport,
        *,
        error_class: type[Exception],
        metric_prefix: str,
        logger: Logger,
        backoff: BaseBackoffStrategy | None = None,
    ) -> None:
        self.config = config
        self.transport = transport
        self.error_class = error_class
        self.metric_prefix = metric_prefix
        self.logger = logger
        self.decider = RetryDecider(config.retry_codes, config.retry_count)
        self.backoff = backoff or ExponentialBackoff(
            base_delay=config.retry_interval, multiplier=config.retry_multiplier
        )

    def execute(self, action: str, request: httpx.Request) -> httpx.Response:
        """Send ``request``, retrying on retryable statuses.

        Args:
            action: Action name of the call, used for logging and metrics.
            request: The request sent on every attempt.

        Returns:
            The first response whose status is not retryable.

        Raises:
            Exception: An instance of ``error_class`` if the transport
                fails or the retries are exhausted.
        """
        state = RetryState(action=action, verb=request.method.upper(), transport_request=request)
        while True:
            response = self._attempt(state)
            if not self.decider.is_retryable(response):
                if state.attempt_count > 0:
                    self.logger.debug(
                        f"HTTP {state.verb}: {action} succeeded after {state.attempt_count} retries",
                        metric=f"{self.metric_prefix}/{action}",
                    )
                return response

            if not self.decider.has_retries_left(state):
                self._raise_exhausted(state, response)

            state.attempt_count += 1
            delay = self.backoff.calculate(state.attempt_count)
            self.logger.warning(
                f"HTTP {state.verb}: {action} Failure: ({response.status_code}) "
                f"{response.reason_phrase}. Retry: {state.attempt_count} in {delay:.3f}s",
                metric=f"{self.metric_prefix}/retry",
                duration=delay * 1_000,
                status_code=response.status_code,
            )
            time.sleep(delay)

    def _attempt(self, state: RetryState) -> httpx.Response:
        payload = None
        if self.logger.is_trace_enabled():
            payload = {"path": state.transport_request.url.raw_path.decode("ascii")}
        start = time.perf_counter()
        try:
            with self.logger.benchmark_info(
                f"HTTP {state.verb}: {state.action}",
                metric=f"{self.metric_prefix}/{state.action}",
                payload=payload,
            ):
                response = self.transport.execute(state.transport_request)
        except (httpx.RequestError, OSError) as exc:
            message = f"HTTP {state.verb}: {state.action} Failure: {type(exc).__name__}: {exc}"
            self.logger.error(message, exception=exc, metric=f"{self.metric_prefix}/exception")
            error = TransportError(message, method=state.verb, action=state.action, cause=exc)
            raise self.error_class(message) from error

        elapsed = time.perf_counter() - start
        if self.config.warn_timeout > 0 and elapsed > self.config.warn_timeout:
            self.logger.warning(
                f"HTTP {state.verb}: {state.action} took {elapsed:.3f}s",
                metric=f"{self.metric_prefix}/slow",
                duration=elapsed * 1_000,
            )
        return response

    def _raise_exhausted(self, state: RetryState, response: httpx.Response) -> NoReturn:
        message = (
            f"HTTP {state.verb}: {state.action} Failure: ({response.status_code}) "
            f"{response.reason_phrase}. Retries Exhausted"
        )
        self.logger.error(
            message, metric=f"{self.metric_prefix}/exception", status_code=response.status_code
        )
        error = RetryableStatusError(
            message,
            method=state.verb,
            action=state.action,
            status_code=response.status_code,
            response=response,
        )
        raise self.error_class(message) from error
