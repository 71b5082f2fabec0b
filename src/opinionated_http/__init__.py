r"""opinionated_http - Opinionated HTTP client with a shared retry policy.

This package wraps a pooled HTTP connection with the conventions shared by
every service client: requests are named by an action, configuration is
resolved once from keyword arguments and a hierarchical configuration
source, retryable statuses (502, 503, 504) are retried with exponential
backoff, every call is timed and logged, and every failure surfaces as the
single error class chosen by the caller.

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
    ...     body = client.post(action="lookup", json={"zip": "12345"}).raise_on_failure()
    ...

    ```
"""

from __future__ import annotations

__all__ = [
    "BodyFormat",
    "Client",
    "ClientConfig",
    "ConfigurationError",
    "ConstructionError",
    "HierarchicalConfig",
    "HttpxTransport",
    "OpinionatedHttpError",
    "RequestSpec",
    "ResponseWrapper",
    "StdlibLogger",
    "Verb",
    "__version__",
]

from importlib.metadata import PackageNotFoundError, version

from opinionated_http.client import Client
from opinionated_http.core.config import ClientConfig
from opinionated_http.core.source import HierarchicalConfig
from opinionated_http.exceptions import (
    ConfigurationError,
    ConstructionError,
    OpinionatedHttpError,
)
from opinionated_http.logger import StdlibLogger
from opinionated_http.request import BodyFormat, RequestSpec, Verb
from opinionated_http.response import ResponseWrapper
from opinionated_http.transport import HttpxTransport

try:
    __version__ = version("opinionated-http")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"
