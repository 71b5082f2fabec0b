r"""Declarative description of one outbound HTTP call.

A ``RequestSpec`` holds the fields of a call (action, verb, path,
headers, body or form data, query parameters, credentials and body
format) and derives the transport-ready ``httpx.Request`` from them,
enforcing the request construction rules shared by every client.
"""

from __future__ import annotations

__all__ = ["BodyFormat", "RequestSpec", "Verb"]

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

import httpx

from opinionated_http.exceptions import (
    ConfigurationError,
    ConstructionError,
    SerializationError,
)

if TYPE_CHECKING:
    from collections.abc import Mapping


class Verb(str, Enum):
    """HTTP verbs supported by the client.

    Example:
        ```pycon
        >>> from opinionated_http.request import Verb
        >>> Verb.coerce("Get")
        <Verb.GET: 'GET'>
        >>> Verb.POST.request_body_permitted
        True

        ```
    """

    GET = "GET"
    POST = "POST"
    PATCH = "PATCH"
    DELETE = "DELETE"

    @classmethod
    def coerce(cls, value: Verb | str) -> Verb:
        """Return the verb matching ``value``, ignoring case.

        Raises:
            ConstructionError: If ``value`` is not a supported verb.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError as exc:
            msg = f"Unsupported HTTP verb: {value!r}"
            raise ConstructionError(msg, cause=exc) from exc

    @property
    def request_body_permitted(self) -> bool:
        """Whether a request with this verb may carry a body."""
        match self:
            case Verb.POST | Verb.PATCH:
                return True
            case Verb.GET | Verb.DELETE:
                return False

    @property
    def response_body_permitted(self) -> bool:
        """Whether a response to this verb may carry a body."""
        match self:
            case Verb.GET | Verb.POST | Verb.PATCH | Verb.DELETE:
                return True


class BodyFormat(str, Enum):
    """Encoding of request and response bodies."""

    NONE = "none"
    JSON = "json"

    @classmethod
    def coerce(cls, value: BodyFormat | str | None) -> BodyFormat:
        """Return the format matching ``value``; ``None`` means ``NONE``.

        Raises:
            ConfigurationError: If ``value`` is not a known format.
        """
        if value is None:
            return cls.NONE
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError as exc:
            msg = f"Unknown format: {value!r}"
            raise ConfigurationError(msg, cause=exc) from exc


@dataclass
class RequestSpec:
    """Fields describing one outbound HTTP call.

    Args:
        action: Logical name of the call, used for logging, metrics and
            the default path.
        verb: HTTP verb. Required before the request is built; the client
            verb methods set it.
        path: Request path. Defaults to ``/{action}``; a leading ``/`` is
            added when missing.
        format: Body format. ``json`` serializes the body and parses the
            response body. An unknown format raises
            ``ConfigurationError``.
        headers: Request headers. Never mutated.
        body: Request body. Mutually exclusive with ``form_data``.
        form_data: Fields sent as ``application/x-www-form-urlencoded``.
        username: Optional basic auth user name.
        password: Optional basic auth password.
        parameters: Query parameters appended to the path.

    Example:
        ```pycon
        >>> from opinionated_http.request import RequestSpec
        >>> spec = RequestSpec(action="lookup", verb="GET", parameters={"zip": "12345"})
        >>> spec.path
        '/lookup'
        >>> spec.path_with_parameters()
        '/lookup?zip=12345'
        >>> request = spec.build_transport_request("https://example.com/")
        >>> str(request.url)
        'https://example.com/lookup?zip=12345'

        ```
    """

    action: str
    verb: Verb | str | None = None
    path: str | None = None
    format: BodyFormat | str | None = None
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Any = None
    form_data: Mapping[str, Any] | None = None
    username: str | None = None
    password: str | None = None
    parameters: Mapping[str, Any] | None = None

    def __post_init__(self) -> None:
        if not self.action:
            msg = "action must be a non-empty string"
            raise ConstructionError(msg)
        if self.path is None or self.path == "":
            self.path = f"/{self.action}"
        elif not self.path.startswith("/"):
            self.path = f"/{self.path}"
        if self.verb is not None:
            self.verb = Verb.coerce(self.verb)
        if self.format is not None:
            self.format = BodyFormat.coerce(self.format)
        if self.headers is None:
            self.headers = {}

    def path_with_parameters(self) -> str:
        """Return the path followed by the URL-encoded query parameters."""
        if not self.parameters:
            return self.path
        return f"{self.path}?{httpx.QueryParams(self.parameters)}"

    def build_transport_request(self, base_url: str | None = None) -> httpx.Request:
        """Build the transport-ready request.

        Args:
            base_url: Optional base URL the path is appended to.

        Returns:
            The ``httpx.Request`` to send.

        Raises:
            ConstructionError: If the verb is unset, both a body and form
                data are supplied, form data conflicts with a supplied
                content-type header, or the verb does not permit a body
                or query parameters.
            SerializationError: If the body cannot be serialized.
            ConfigurationError: If the format is unknown.
        """
        if self.verb is None:
            msg = f"No HTTP verb set for action {self.action!r}"
            raise ConstructionError(msg)
        verb = Verb.coerce(self.verb)

        if self.form_data is not None and _has_header(self.headers, "content-type"):
            msg = "Setting form data will overwrite supplied content-type"
            raise ConstructionError(msg)
        if self.body is not None and self.form_data is not None:
            msg = "Cannot supply both form_data and a body"
            raise ConstructionError(msg)
        if (self.body is not None or self.form_data is not None) and not verb.request_body_permitted:
            msg = f"HTTP {verb.value} does not support a request body"
            raise ConstructionError(msg)
        if self.parameters and not verb.response_body_permitted:
            msg = f"parameters cannot be supplied for HTTP {verb.value}"
            raise ConstructionError(msg)

        headers = httpx.Headers(self.headers)
        content = self._serialize_body(headers)
        url = self.path_with_parameters()
        if base_url:
            url = f"{str(base_url).rstrip('/')}{url}"

        request = httpx.Request(
            verb.value,
            url,
            headers=headers,
            content=content,
            data=dict(self.form_data) if self.form_data is not None else None,
        )
        if self.username is not None and self.password is not None:
            request = next(httpx.BasicAuth(self.username, self.password).auth_flow(request))
        return request

    def _serialize_body(self, headers: httpx.Headers) -> str | bytes | None:
        if self.body is None:
            return None

        body_format = BodyFormat.coerce(self.format)
        if body_format is BodyFormat.NONE:
            if not isinstance(self.body, (str, bytes)):
                msg = (
                    f"Failed to serialize request body. A {type(self.body).__name__} body "
                    "requires the json format"
                )
                raise SerializationError(msg)
            return self.body

        try:
            content = json.dumps(self.body)
        except (TypeError, ValueError) as exc:
            msg = f"Failed to serialize request body. {type(exc).__name__}: {exc}"
            raise SerializationError(msg, cause=exc) from exc
        headers["Content-Type"] = "application/json"
        headers.setdefault("Accept", "application/json")
        return content


def _has_header(headers: Mapping[str, str], name: str) -> bool:
    return any(key.lower() == name for key in headers)
