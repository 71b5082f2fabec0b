r"""Wrapper around the final HTTP response of a call."""

from __future__ import annotations

__all__ = ["ResponseWrapper"]

import json
from typing import TYPE_CHECKING, Any, NoReturn

from opinionated_http.exceptions import (
    ApplicationStatusError,
    DeserializationError,
)
from opinionated_http.request import BodyFormat, Verb

if TYPE_CHECKING:
    import httpx

    from opinionated_http.logger import Logger
    from opinionated_http.request import RequestSpec

_UNSET: Any = object()


class ResponseWrapper:
    """Response of a call, together with the request that produced it.

    The body is decoded lazily according to the request format, at most
    once. A non-success response is returned normally; callers decide
    whether it is a failure by calling ``raise_on_failure``.

    Args:
        response: The final HTTP response.
        request: The ``RequestSpec`` of the call.
        error_class: Exception class raised on failures. It is created
            with a single message argument.
        metric_prefix: Prefix of the metric names of logged events.
        logger: Logger receiving failure events.

    Example:
        ```pycon
        >>> import httpx
        >>> from opinionated_http.logger import StdlibLogger
        >>> from opinionated_http.request import RequestSpec
        >>> from opinionated_http.response import ResponseWrapper
        >>> response = ResponseWrapper(
        ...     httpx.Response(200, json={"zip": "12345"}),
        ...     RequestSpec(action="lookup", verb="GET", format="json"),
        ...     error_class=RuntimeError,
        ...     metric_prefix="FakeService",
        ...     logger=StdlibLogger("doctest"),
        ... )
        >>> response.success
        True
        >>> response.decoded_body()
        {'zip': '12345'}

        ```
    """

    def __init__(
        self,
        response: httpx.Response,
        request: RequestSpec,
        *,
        error_class: type[Exception],
        metric_prefix: str,
        logger: Logger,
    ) -> None:
        self._response = response
        self._request = request
        self.error_class = error_class
        self.metric_prefix = metric_prefix
        self.logger = logger
        self._body: Any = _UNSET

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(verb={self.verb}, action={self.action!r}, "
            f"status_code={self.status_code})"
        )

    @property
    def raw(self) -> httpx.Response:
        """The underlying ``httpx.Response``."""
        return self._response

    @property
    def request(self) -> RequestSpec:
        return self._request

    @property
    def status_code(self) -> int:
        return self._response.status_code

    code = status_code

    @property
    def message(self) -> str:
        """The reason phrase of the response, e.g. ``"Forbidden"``."""
        return self._response.reason_phrase

    @property
    def headers(self) -> httpx.Headers:
        return self._response.headers

    @property
    def verb(self) -> str:
        verb = self._request.verb
        return verb.value if isinstance(verb, Verb) else str(verb).upper()

    @property
    def action(self) -> str:
        return self._request.action

    @property
    def path(self) -> str:
        return self._request.path

    @property
    def format(self) -> BodyFormat | str | None:
        return self._request.format

    @property
    def success(self) -> bool:
        """Whether the status code is 2xx."""
        return self._response.is_success

    @property
    def body(self) -> Any:
        """Alias of ``decoded_body()``."""
        return self.decoded_body()

    def decoded_body(self) -> Any:
        """Return the response body decoded according to the request format.

        The decoded value is cached. Responses that cannot carry a body
        (1xx, 204, 304) decode to ``None``.

        Returns:
            The parsed JSON value for the ``json`` format, otherwise the
            body text.

        Raises:
            ConfigurationError: If the request format is unknown.
            Exception: An instance of ``error_class`` if the body cannot
                be parsed.
        """
        if self._body is _UNSET:
            try:
                self._body = self._decode()
            except DeserializationError as exc:
                self.logger.error(
                    exc.message,
                    exception=exc.cause,
                    metric=f"{self.metric_prefix}/exception",
                    action=self.action,
                    status_code=self.status_code,
                )
                raise self.error_class(exc.message) from exc
        return self._body

    def raise_on_failure(self) -> Any:
        """Return the decoded body, or raise if the response is not a success.

        Returns:
            The decoded body of a successful response.

        Raises:
            Exception: An instance of ``error_class`` with a message
                ``"HTTP {VERB}: {action} Failure: ({code}) {message}"``
                when the status code is not 2xx.
        """
        if self.success:
            return self.decoded_body()
        self._raise_failure()

    def _raise_failure(self) -> NoReturn:
        message = f"HTTP {self.verb}: {self.action} Failure: ({self.status_code}) {self.message}"
        self.logger.error(
            message,
            metric=f"{self.metric_prefix}/exception",
            action=self.action,
            status_code=self.status_code,
            payload={"body": self._body_for_log()},
        )
        error = ApplicationStatusError(
            message,
            method=self.verb,
            action=self.action,
            status_code=self.status_code,
            response=self._response,
        )
        raise self.error_class(message) from error

    def _decode(self) -> Any:
        if not _body_permitted(self.status_code):
            return None

        body_format = BodyFormat.coerce(self._request.format)
        if body_format is BodyFormat.NONE:
            return self._response.text

        try:
            return json.loads(self._response.content)
        except ValueError as exc:
            msg = f"Failed to parse response body. {type(exc).__name__}: {exc}"
            raise DeserializationError(msg, cause=exc) from exc

    def _body_for_log(self) -> Any:
        # Failure events must not raise a second error for a bad body
        if self._body is not _UNSET:
            return self._body
        try:
            return self._decode()
        except DeserializationError:
            return self._response.text


def _body_permitted(status_code: int) -> bool:
    return not (100 <= status_code < 200 or status_code in {204, 304})
