r"""Pooled HTTP transport.

The transport owns the connection pool and performs the network
exchange. ``HttpxTransport`` is the default implementation: a single
``httpx.Client`` configured from the resolved ``ClientConfig`` and
shared by every call of a ``Client``. ``httpx.Client`` is thread-safe,
so the transport performs no locking of its own.
"""

from __future__ import annotations

__all__ = ["HttpxTransport", "Transport", "TransportLogSink"]

import ssl
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import httpx

if TYPE_CHECKING:
    from collections.abc import Mapping
    from types import TracebackType
    from typing import Self

    from opinionated_http.core.config import ClientConfig
    from opinionated_http.logger import Logger


@runtime_checkable
class Transport(Protocol):
    """Protocol for the component that sends requests over the network."""

    def execute(self, request: httpx.Request) -> httpx.Response:
        """Send a request and return its response.

        Raises:
            httpx.RequestError: If the request fails before a response is
                received (connection refused, timeout, protocol error, ...).
        """

    def close(self) -> None:
        """Release the connections held by the transport."""


class TransportLogSink:
    """Routes the transport diagnostics to a logger at trace level.

    The sink is registered as ``httpx`` event hooks, so it sees every
    request sent and every response received on the wire, including
    redirects.

    Args:
        logger: The logger receiving the diagnostics.
    """

    def __init__(self, logger: Logger) -> None:
        self.logger = logger

    def event_hooks(self) -> dict[str, list]:
        """Return the ``event_hooks`` mapping for ``httpx.Client``."""
        return {"request": [self.on_request], "response": [self.on_response]}

    def on_request(self, request: httpx.Request) -> None:
        if not self.logger.is_trace_enabled():
            return
        self.logger.trace(
            f"> {request.method} {request.url}", headers=dict(_redacted(request.headers))
        )

    def on_response(self, response: httpx.Response) -> None:
        if not self.logger.is_trace_enabled():
            return
        self.logger.trace(
            f"< {response.http_version} {response.status_code} {response.reason_phrase}",
            headers=dict(response.headers),
        )


class HttpxTransport:
    """Transport backed by a pooled ``httpx.Client``.

    Args:
        config: The resolved client configuration providing the pool
            size, timeouts, proxy policy, TLS settings and redirect bound.
        logger: Logger receiving the transport diagnostics.
        headers: Default headers added to every request that does not
            already set them.
        transport: Optional low level ``httpx`` transport, e.g.
            ``httpx.MockTransport`` in tests.

    Example:
        ```pycon
        >>> import httpx
        >>> from opinionated_http.core.config import ClientConfig
        >>> from opinionated_http.logger import StdlibLogger
        >>> from opinionated_http.transport import HttpxTransport
        >>> mock = httpx.MockTransport(lambda request: httpx.Response(200, text="ok"))
        >>> with HttpxTransport(
        ...     ClientConfig(url="https://example.com"), StdlibLogger("doctest"), transport=mock
        ... ) as transport:
        ...     transport.execute(httpx.Request("GET", "https://example.com/ping")).text
        ...
        'ok'

        ```
    """

    def __init__(
        self,
        config: ClientConfig,
        logger: Logger,
        *,
        headers: Mapping[str, str] | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._headers = httpx.Headers(headers or {})
        self._sink = TransportLogSink(logger)
        proxy, trust_env = _proxy_settings(config.proxy)
        self._client = httpx.Client(
            timeout=httpx.Timeout(
                connect=config.open_timeout,
                read=config.read_timeout,
                write=config.read_timeout,
                pool=config.pool_timeout,
            ),
            limits=httpx.Limits(
                max_connections=config.pool_size,
                max_keepalive_connections=config.pool_size,
                keepalive_expiry=config.idle_timeout,
            ),
            verify=_ssl_settings(config),
            proxy=proxy,
            trust_env=trust_env,
            follow_redirects=config.max_redirects > 0,
            max_redirects=config.max_redirects,
            event_hooks=self._sink.event_hooks(),
            transport=transport,
        )

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    @property
    def is_closed(self) -> bool:
        return self._client.is_closed

    def execute(self, request: httpx.Request) -> httpx.Response:
        """Send a request through the pooled client.

        The default headers are added to the request unless it already
        sets them. The response body is read before returning.

        Args:
            request: The request to send.

        Returns:
            The response of the server.

        Raises:
            httpx.RequestError: If no response is received.
        """
        for name, value in self._headers.items():
            request.headers.setdefault(name, value)
        request.extensions.setdefault("timeout", self._client.timeout.as_dict())
        return self._client.send(request)

    def close(self) -> None:
        self._client.close()


def _proxy_settings(proxy: str | None) -> tuple[str | None, bool]:
    """Return the ``proxy`` and ``trust_env`` arguments of ``httpx.Client``."""
    if proxy is None or proxy.lower() == "none":
        return None, False
    if proxy.lower() == "env":
        return None, True
    return proxy, False


def _ssl_settings(config: ClientConfig) -> ssl.SSLContext | bool:
    """Return the ``verify`` argument of ``httpx.Client``."""
    if config.certificate is None:
        return config.verify_peer

    context = ssl.create_default_context()
    if not config.verify_peer:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    context.load_cert_chain(certfile=config.certificate, keyfile=config.private_key)
    return context


def _redacted(headers: httpx.Headers) -> list[tuple[str, str]]:
    return [
        (name, "********" if name.lower() in {"authorization", "proxy-authorization"} else value)
        for name, value in headers.items()
    ]
