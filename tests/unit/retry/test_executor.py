r"""Unit tests for synchronous retry executor."""

from __future__ import annotations

from unittest.mock import Mock, call, patch

import httpx
import pytest

from opinionated_http.backoff import ExponentialBackoff
from opinionated_http.exceptions import RetryableStatusError, TransportError
from opinionated_http.retry import RetryConfig, RetryExecutor
from tests.helpers import FakeLogger, FakeTransport, ServiceError

URL = "https://api.example.com/lookup?zip=12345"


@pytest.fixture
def request_() -> httpx.Request:
    return httpx.Request("GET", URL)


def create_executor(
    transport: FakeTransport,
    logger: FakeLogger,
    *,
    retry_count: int = 11,
    warn_timeout: float = 0.0,
) -> RetryExecutor:
    return RetryExecutor(
        RetryConfig(retry_count=retry_count, warn_timeout=warn_timeout),
        transport,
        error_class=ServiceError,
        metric_prefix="FakeService",
        logger=logger,
    )


###################################
#     Tests for RetryExecutor     #
###################################


def test_retry_executor_creation(fake_transport: FakeTransport, fake_logger: FakeLogger) -> None:
    """Test RetryExecutor initialization."""
    executor = create_executor(fake_transport, fake_logger, retry_count=3)
    assert executor.decider.retry_count == 3
    assert isinstance(executor.backoff, ExponentialBackoff)
    assert executor.backoff.base_delay == 0.01
    assert executor.backoff.multiplier == 1.8


def test_retry_executor_custom_backoff(fake_transport: FakeTransport, fake_logger: FakeLogger) -> None:
    """Test that a custom backoff strategy is used."""
    backoff = ExponentialBackoff(base_delay=1.0)
    executor = RetryExecutor(
        RetryConfig(),
        fake_transport,
        error_class=ServiceError,
        metric_prefix="FakeService",
        logger=fake_logger,
        backoff=backoff,
    )
    assert executor.backoff is backoff


def test_retry_executor_successful_request(
    fake_transport: FakeTransport, fake_logger: FakeLogger, request_: httpx.Request, mock_sleep: Mock
) -> None:
    """Test successful request without retries."""
    response = create_executor(fake_transport, fake_logger).execute("lookup", request_)

    assert response.status_code == 200
    assert fake_transport.requests == [request_]
    mock_sleep.assert_not_called()
    (event,) = fake_logger.events
    assert event.level == "info"
    assert event.message == "HTTP GET: lookup"
    assert event.fields["metric"] == "FakeService/lookup"
    assert event.fields["payload"] is None


def test_retry_executor_trace_payload(
    fake_transport: FakeTransport, request_: httpx.Request, mock_sleep: Mock
) -> None:
    """Test that the request path is logged when trace is enabled."""
    logger = FakeLogger(trace=True)
    create_executor(fake_transport, logger).execute("lookup", request_)
    assert logger.at("info")[0].fields["payload"] == {"path": "/lookup?zip=12345"}


@pytest.mark.parametrize("failures", [1, 2, 5])
def test_retry_executor_retries_then_succeeds(
    fake_logger: FakeLogger, request_: httpx.Request, mock_sleep: Mock, failures: int
) -> None:
    """Test that k retryable responses are followed by k retries with
    exponential delays."""
    transport = FakeTransport([503] * failures + [200])
    response = create_executor(transport, fake_logger).execute("lookup", request_)

    assert response.status_code == 200
    assert len(transport.requests) == failures + 1
    assert all(sent is request_ for sent in transport.requests)
    backoff = ExponentialBackoff()
    assert mock_sleep.call_args_list == [call(backoff.calculate(n)) for n in range(1, failures + 1)]
    assert len(fake_logger.at("warning")) == failures


def test_retry_executor_sleeps_geometric_sequence(
    fake_logger: FakeLogger, request_: httpx.Request, mock_sleep: Mock
) -> None:
    """Test the delays of the first retries with the default settings."""
    transport = FakeTransport([502, 503, 504, 503, 200])
    create_executor(transport, fake_logger).execute("lookup", request_)
    delays = [args.args[0] for args in mock_sleep.call_args_list]
    assert delays == pytest.approx([0.0, 0.018, 0.0324, 0.05832])


def test_retry_executor_retry_warning(
    fake_logger: FakeLogger, request_: httpx.Request, mock_sleep: Mock
) -> None:
    """Test the warning logged before a retry."""
    transport = FakeTransport([503, 503, 200])
    create_executor(transport, fake_logger).execute("lookup", request_)

    first, second = fake_logger.at("warning")
    assert first.message == "HTTP GET: lookup Failure: (503) Service Unavailable. Retry: 1 in 0.000s"
    assert second.message == "HTTP GET: lookup Failure: (503) Service Unavailable. Retry: 2 in 0.018s"
    assert second.fields["metric"] == "FakeService/retry"
    assert second.fields["duration"] == pytest.approx(18.0)
    assert second.fields["status_code"] == 503
    assert fake_logger.at("debug")[0].message == "HTTP GET: lookup succeeded after 2 retries"


def test_retry_executor_retries_exhausted(
    fake_logger: FakeLogger, request_: httpx.Request, mock_sleep: Mock
) -> None:
    """Test that a persistent retryable status raises after retry_count
    retries."""
    transport = FakeTransport([503])
    with pytest.raises(
        ServiceError,
        match=r"HTTP GET: lookup Failure: \(503\) Service Unavailable. Retries Exhausted",
    ) as exc_info:
        create_executor(transport, fake_logger, retry_count=3).execute("lookup", request_)

    assert len(transport.requests) == 4
    assert mock_sleep.call_count == 3
    cause = exc_info.value.__cause__
    assert isinstance(cause, RetryableStatusError)
    assert cause.status_code == 503
    assert cause.method == "GET"
    assert cause.action == "lookup"
    (event,) = fake_logger.at("error")
    assert event.fields["metric"] == "FakeService/exception"


def test_retry_executor_default_retry_count(
    fake_logger: FakeLogger, request_: httpx.Request, mock_sleep: Mock
) -> None:
    """Test that the default policy performs 11 retries."""
    transport = FakeTransport([502])
    with pytest.raises(ServiceError, match=r"Retries Exhausted"):
        create_executor(transport, fake_logger).execute("lookup", request_)
    assert len(transport.requests) == 12
    assert mock_sleep.call_count == 11


def test_retry_executor_no_retries(
    fake_logger: FakeLogger, request_: httpx.Request, mock_sleep: Mock
) -> None:
    """Test that retry_count=0 raises after the first attempt."""
    transport = FakeTransport([504])
    with pytest.raises(ServiceError, match=r"\(504\) Gateway Timeout. Retries Exhausted"):
        create_executor(transport, fake_logger, retry_count=0).execute("lookup", request_)
    assert len(transport.requests) == 1
    mock_sleep.assert_not_called()


@pytest.mark.parametrize("status_code", [500, 400, 404, 429])
def test_retry_executor_returns_non_retryable_status(
    fake_logger: FakeLogger, request_: httpx.Request, mock_sleep: Mock, status_code: int
) -> None:
    """Test that non retryable statuses, 500 included, are returned
    immediately."""
    transport = FakeTransport([status_code, 200])
    response = create_executor(transport, fake_logger).execute("lookup", request_)
    assert response.status_code == status_code
    assert len(transport.requests) == 1
    mock_sleep.assert_not_called()
    assert fake_logger.at("error") == []


def test_retry_executor_transport_error(
    fake_logger: FakeLogger, request_: httpx.Request, mock_sleep: Mock
) -> None:
    """Test that a transport failure is raised without retry."""
    error = httpx.ConnectError("Connection refused", request=request_)
    transport = FakeTransport([error, 200])
    with pytest.raises(
        ServiceError, match=r"HTTP GET: lookup Failure: ConnectError: Connection refused"
    ) as exc_info:
        create_executor(transport, fake_logger).execute("lookup", request_)

    assert len(transport.requests) == 1
    mock_sleep.assert_not_called()
    cause = exc_info.value.__cause__
    assert isinstance(cause, TransportError)
    assert cause.cause is error
    assert cause.method == "GET"
    assert cause.action == "lookup"
    (event,) = fake_logger.at("error")
    assert event.fields["exception"] is error
    assert event.fields["metric"] == "FakeService/exception"
    assert fake_logger.at("info") == []


def test_retry_executor_os_error(
    fake_logger: FakeLogger, request_: httpx.Request, mock_sleep: Mock
) -> None:
    """Test that an OSError from a custom transport is converted like a
    transport failure and not retried."""
    error = ConnectionRefusedError("Connection refused")
    transport = FakeTransport([error, 200])
    with pytest.raises(
        ServiceError, match=r"HTTP GET: lookup Failure: ConnectionRefusedError: Connection refused"
    ) as exc_info:
        create_executor(transport, fake_logger).execute("lookup", request_)

    assert len(transport.requests) == 1
    mock_sleep.assert_not_called()
    cause = exc_info.value.__cause__
    assert isinstance(cause, TransportError)
    assert cause.cause is error
    (event,) = fake_logger.at("error")
    assert event.fields["exception"] is error
    assert event.fields["metric"] == "FakeService/exception"


def test_retry_executor_timeout_error(
    fake_logger: FakeLogger, request_: httpx.Request, mock_sleep: Mock
) -> None:
    """Test that a read timeout is a transport failure."""
    transport = FakeTransport([httpx.ReadTimeout("timed out", request=request_)])
    with pytest.raises(ServiceError, match=r"ReadTimeout: timed out"):
        create_executor(transport, fake_logger).execute("lookup", request_)
    mock_sleep.assert_not_called()


def test_retry_executor_slow_attempt_warning(
    fake_transport: FakeTransport, fake_logger: FakeLogger, request_: httpx.Request
) -> None:
    """Test that an attempt slower than warn_timeout is logged."""
    executor = create_executor(fake_transport, fake_logger, warn_timeout=0.25)
    with patch("time.perf_counter", side_effect=[10.0, 10.5]):
        executor.execute("lookup", request_)

    (event,) = fake_logger.at("warning")
    assert event.message == "HTTP GET: lookup took 0.500s"
    assert event.fields["metric"] == "FakeService/slow"
    assert event.fields["duration"] == pytest.approx(500.0)


def test_retry_executor_fast_attempt_no_warning(
    fake_transport: FakeTransport, fake_logger: FakeLogger, request_: httpx.Request
) -> None:
    """Test that an attempt faster than warn_timeout is not logged."""
    executor = create_executor(fake_transport, fake_logger, warn_timeout=0.25)
    with patch("time.perf_counter", side_effect=[10.0, 10.1]):
        executor.execute("lookup", request_)
    assert fake_logger.at("warning") == []
