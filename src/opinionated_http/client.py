r"""Opinionated HTTP client.

This module provides the ``Client`` composition root. A client resolves
its configuration once, owns one pooled transport, and turns an action
name and a verb into a request that is executed with the shared retry
policy. Every failure surfaced to callers is an instance of the single
error class chosen when the client is created.
"""

from __future__ import annotations

__all__ = ["Client"]

import logging
from dataclasses import fields as dataclass_fields
from dataclasses import replace
from typing import TYPE_CHECKING, Any

from opinionated_http.core.config import ClientConfig
from opinionated_http.core.source import HierarchicalConfig
from opinionated_http.exceptions import ConstructionError, SerializationError
from opinionated_http.logger import StdlibLogger
from opinionated_http.request import BodyFormat, RequestSpec, Verb
from opinionated_http.response import ResponseWrapper
from opinionated_http.retry import RetryConfig, RetryExecutor
from opinionated_http.transport import HttpxTransport

if TYPE_CHECKING:
    from collections.abc import Mapping
    from types import TracebackType
    from typing import Self

    from opinionated_http.core.source import ConfigSource
    from opinionated_http.logger import Logger
    from opinionated_http.transport import Transport

_SPEC_FIELDS = frozenset(item.name for item in dataclass_fields(RequestSpec))


class Client:
    r"""Opinionated HTTP client with a shared retry policy.

    Every configuration option can be supplied as a keyword argument and
    is overridden by the value stored at ``{config_prefix}.{option}`` in
    ``config_source``. The resolved configuration is immutable, and the
    client is safe to share between threads: the connection pool of the
    transport provides the parallelism.

    Args:
        error_class: Exception class raised on every failure surfaced by
            the client. It is created with a single message argument.
        metric_prefix: Prefix of the metric names of logged events, e.g.
            ``"FakeService"`` gives ``"FakeService/lookup"``.
        config_prefix: Key prefix of this client in ``config_source``.
        config_source: Optional configuration source. Defaults to an
            empty ``HierarchicalConfig``, so only environment variables
            override the options.
        logger: Optional ``Logger`` or ``logging.Logger``. Defaults to the
            ``opinionated_http.client`` logger.
        format: Default body format of requests that declare none.
        headers: Default headers added to every request that does not set
            them.
        transport: Optional transport. Defaults to an ``HttpxTransport``
            built from the resolved configuration.
        **overrides: Configuration options (see ``ClientConfig``), e.g.
            ``url``, ``retry_count`` or ``pool_size``.

    Raises:
        ConfigurationError: If an option is unknown or invalid, or the
            URL is not configured.

    Example:
        ```pycon
        >>> from opinionated_http import Client
        >>> class ServiceError(Exception):
        ...     pass
        ...
        >>> with Client(
        ...     error_class=ServiceError,
        ...     metric_prefix="FakeService",
        ...     config_prefix="fake_service",
        ...     url="https://api.example.com",
        ... ) as client:  # doctest: +SKIP
        ...     response = client.get(action="lookup", parameters={"zip": "12345"})
        ...     body = response.raise_on_failure()
        ...

        ```
    """

    def __init__(
        self,
        *,
        error_class: type[Exception],
        metric_prefix: str,
        config_prefix: str,
        config_source: ConfigSource | None = None,
        logger: Logger | logging.Logger | None = None,
        format: BodyFormat | str | None = None,  # noqa: A002
        headers: Mapping[str, str] | None = None,
        transport: Transport | None = None,
        **overrides: Any,
    ) -> None:
        self.error_class = error_class
        self.metric_prefix = metric_prefix
        self.config_prefix = config_prefix
        self.format = BodyFormat.coerce(format) if format is not None else None
        self.logger = _as_logger(logger)
        self.config = ClientConfig.resolve(
            config_source if config_source is not None else HierarchicalConfig(),
            config_prefix,
            **overrides,
        )
        self.transport: Transport = transport or HttpxTransport(
            self.config, self.logger, headers=headers
        )
        self.executor = RetryExecutor(
            RetryConfig.from_client_config(self.config),
            self.transport,
            error_class=error_class,
            metric_prefix=metric_prefix,
            logger=self.logger,
        )

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(url={self.config.url!r}, metric_prefix={self.metric_prefix!r}, "
            f"error_class={self.error_class.__name__})"
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
    def url(self) -> str:
        return self.config.url

    def close(self) -> None:
        """Close the transport and its pooled connections."""
        self.transport.close()

    def get(self, request: RequestSpec | None = None, **fields: Any) -> ResponseWrapper:
        r"""Send an HTTP GET request.

        Args:
            request: Optional pre-built ``RequestSpec``.
            **fields: Fields of a ``RequestSpec`` when ``request`` is not
                given, e.g. ``action`` and ``parameters``.

        Returns:
            The response of the call.

        Raises:
            ConstructionError: If the request is invalid.

        Example:
            ```pycon
            >>> response = client.get(action="lookup", parameters={"zip": "12345"})  # doctest: +SKIP

            ```
        """
        return self.request(self._prepare(Verb.GET, request, fields))

    def post(
        self,
        request: RequestSpec | None = None,
        *,
        json: Any = None,
        body: Any = None,
        **fields: Any,
    ) -> ResponseWrapper:
        r"""Send an HTTP POST request.

        Args:
            request: Optional pre-built ``RequestSpec``.
            json: Optional body serialized as JSON. Sets the JSON format.
            body: Optional raw body.
            **fields: Fields of a ``RequestSpec`` when ``request`` is not
                given, e.g. ``action`` and ``form_data``.

        Returns:
            The response of the call.

        Raises:
            ConstructionError: If both ``json`` and ``body`` are supplied,
                or the request is invalid.

        Example:
            ```pycon
            >>> response = client.post(action="lookup", json={"zip": "12345"})  # doctest: +SKIP

            ```
        """
        if json is not None and body is not None:
            msg = "Either set json or body"
            raise ConstructionError(msg)

        spec = self._prepare(Verb.POST, request, fields)
        if json is not None:
            spec = replace(spec, format=BodyFormat.JSON, body=json)
        elif body is not None:
            spec = replace(spec, body=body)
        return self.request(spec)

    def patch(self, request: RequestSpec | None = None, **fields: Any) -> ResponseWrapper:
        r"""Send an HTTP PATCH request.

        Args:
            request: Optional pre-built ``RequestSpec``.
            **fields: Fields of a ``RequestSpec`` when ``request`` is not
                given.

        Returns:
            The response of the call.
        """
        return self.request(self._prepare(Verb.PATCH, request, fields))

    def delete(self, request: RequestSpec | None = None, **fields: Any) -> ResponseWrapper:
        r"""Send an HTTP DELETE request.

        Args:
            request: Optional pre-built ``RequestSpec``.
            **fields: Fields of a ``RequestSpec`` when ``request`` is not
                given.

        Returns:
            The response of the call.
        """
        return self.request(self._prepare(Verb.DELETE, request, fields))

    def request(self, request: RequestSpec) -> ResponseWrapper:
        r"""Execute a ``RequestSpec`` with its own verb.

        The client default format applies when the request declares
        none.

        Args:
            request: The request. Its verb must be set.

        Returns:
            The response of the call, whatever its status.

        Raises:
            ConstructionError: If the request is invalid.
            Exception: An instance of ``error_class`` if the body cannot be
                serialized, the transport fails, or the retries are
                exhausted.
        """
        if request.format is None and self.format is not None:
            request = replace(request, format=self.format)

        try:
            transport_request = request.build_transport_request(self.config.url)
        except SerializationError as exc:
            self.logger.error(
                exc.message,
                exception=exc.cause,
                metric=f"{self.metric_prefix}/exception",
                action=request.action,
            )
            raise self.error_class(exc.message) from exc

        response = self.executor.execute(request.action, transport_request)
        return ResponseWrapper(
            response,
            request,
            error_class=self.error_class,
            metric_prefix=self.metric_prefix,
            logger=self.logger,
        )

    def _prepare(
        self, verb: Verb, request: RequestSpec | None, fields: dict[str, Any]
    ) -> RequestSpec:
        if request is None:
            unknown = sorted(set(fields) - _SPEC_FIELDS)
            if unknown:
                msg = f"Unknown request field(s): {', '.join(unknown)}"
                raise ConstructionError(msg)
            if "action" not in fields:
                msg = "action is required"
                raise ConstructionError(msg)
            return RequestSpec(**{**fields, "verb": verb})
        if fields:
            msg = f"Either supply a request or its fields, got both: {', '.join(sorted(fields))}"
            raise ConstructionError(msg)
        return replace(request, verb=verb)


def _as_logger(logger: Logger | logging.Logger | None) -> Logger:
    if logger is None:
        return StdlibLogger(logging.getLogger(__name__))
    if isinstance(logger, logging.Logger):
        return StdlibLogger(logger)
    return logger
