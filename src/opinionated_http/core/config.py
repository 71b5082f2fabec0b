r"""Configuration dataclass and defaults for the opinionated client.

This module provides the default values and the frozen ``ClientConfig``
dataclass that holds the retry policy, the connection pool settings and
the base URL of a ``Client``. The configuration is resolved once, when
the client is created, from built-in defaults, caller overrides and an
external configuration source.
"""

from __future__ import annotations

__all__ = [
    "DEFAULT_IDLE_TIMEOUT",
    "DEFAULT_MAX_REDIRECTS",
    "DEFAULT_OPEN_TIMEOUT",
    "DEFAULT_POOL_SIZE",
    "DEFAULT_POOL_TIMEOUT",
    "DEFAULT_PROXY",
    "DEFAULT_READ_TIMEOUT",
    "DEFAULT_RETRY_COUNT",
    "DEFAULT_RETRY_INTERVAL",
    "DEFAULT_RETRY_MULTIPLIER",
    "DEFAULT_WARN_TIMEOUT",
    "RETRY_STATUS_CODES",
    "ClientConfig",
]

from dataclasses import dataclass, field, fields, replace
from typing import TYPE_CHECKING, Any

from opinionated_http.core.validation import (
    parse_status_codes,
    validate_retry_params,
    validate_timeouts,
)
from opinionated_http.exceptions import ConfigurationError

if TYPE_CHECKING:
    from opinionated_http.core.source import ConfigSource


# Default maximum number of retries
# Total attempts = retry_count + 1 (initial attempt)
DEFAULT_RETRY_COUNT = 11

# Default base interval in seconds between retries
# First retry is immediate, the second waits 0.018s, the third 0.0324s, ...
DEFAULT_RETRY_INTERVAL = 0.01

# Default growth factor between two consecutive retry intervals
DEFAULT_RETRY_MULTIPLIER = 1.8

# HTTP status codes that should trigger automatic retry
# 502: Bad Gateway - Upstream server error
# 503: Service Unavailable - Server overloaded or down
# 504: Gateway Timeout - Upstream server timeout
# 500 is not retried: it means the application itself failed
RETRY_STATUS_CODES = (502, 503, 504)

# Maximum number of connections kept in the pool
DEFAULT_POOL_SIZE = 100

# Timeouts in seconds
DEFAULT_OPEN_TIMEOUT = 10.0
DEFAULT_READ_TIMEOUT = 10.0
DEFAULT_IDLE_TIMEOUT = 300.0
DEFAULT_POOL_TIMEOUT = 5.0

# Attempts slower than this many seconds are logged as a warning
DEFAULT_WARN_TIMEOUT = 0.25

# "env" reads the proxy from the HTTP_PROXY/HTTPS_PROXY/NO_PROXY variables
DEFAULT_PROXY = "env"

DEFAULT_MAX_REDIRECTS = 10


@dataclass(frozen=True)
class ClientConfig:
    """Resolved configuration of a ``Client``.

    Args:
        url: Base URL every request path is appended to.
        retry_count: Maximum number of retries for a retryable status.
            Must be >= 0.
        retry_interval: Base interval in seconds between retries. Must be >= 0.
        retry_multiplier: Growth factor between retry intervals. Must be >= 1.
        retry_codes: HTTP status codes that trigger a retry.
        pool_size: Maximum number of pooled connections. Must be >= 1.
        open_timeout: Seconds to wait for a connection to open.
        read_timeout: Seconds to wait for data to be read or written.
        idle_timeout: Seconds an idle pooled connection is kept alive.
        pool_timeout: Seconds to wait for a free connection in the pool.
        warn_timeout: Attempts slower than this are logged as a warning.
            ``0`` disables the warning.
        proxy: ``"env"`` to use the proxy environment variables, ``"none"``
            to disable proxies, or a proxy URL.
        max_redirects: Maximum number of redirects followed. ``0`` disables
            redirect following.
        verify_peer: Whether the server TLS certificate is verified.
        certificate: Optional path to a client certificate (PEM).
        private_key: Optional path to the client certificate private key (PEM).

    Example:
        ```pycon
        >>> from opinionated_http.core.config import ClientConfig
        >>> config = ClientConfig(url="https://example.com")
        >>> config.retry_count
        11
        >>> config.retry_codes
        (502, 503, 504)
        >>> config.merge(retry_count=3).retry_count
        3

        ```
    """

    url: str
    retry_count: int = DEFAULT_RETRY_COUNT
    retry_interval: float = DEFAULT_RETRY_INTERVAL
    retry_multiplier: float = DEFAULT_RETRY_MULTIPLIER
    retry_codes: tuple[int, ...] = field(default_factory=lambda: RETRY_STATUS_CODES)
    pool_size: int = DEFAULT_POOL_SIZE
    open_timeout: float = DEFAULT_OPEN_TIMEOUT
    read_timeout: float = DEFAULT_READ_TIMEOUT
    idle_timeout: float = DEFAULT_IDLE_TIMEOUT
    pool_timeout: float = DEFAULT_POOL_TIMEOUT
    warn_timeout: float = DEFAULT_WARN_TIMEOUT
    proxy: str | None = DEFAULT_PROXY
    max_redirects: int = DEFAULT_MAX_REDIRECTS
    verify_peer: bool = True
    certificate: str | None = None
    private_key: str | None = None

    def __post_init__(self) -> None:
        """Validate configuration parameters after initialization.

        Raises:
            ConfigurationError: If any parameter fails validation.
        """
        if not self.url:
            msg = "url must be a non-empty string"
            raise ConfigurationError(msg)
        # Frozen dataclass: normalize through object.__setattr__
        object.__setattr__(self, "retry_codes", parse_status_codes(self.retry_codes))
        validate_retry_params(
            retry_count=self.retry_count,
            retry_interval=self.retry_interval,
            retry_multiplier=self.retry_multiplier,
        )
        validate_timeouts(
            open_timeout=self.open_timeout,
            read_timeout=self.read_timeout,
            idle_timeout=self.idle_timeout,
            pool_timeout=self.pool_timeout,
        )
        if self.warn_timeout < 0:
            msg = f"warn_timeout must be >= 0, got {self.warn_timeout}"
            raise ConfigurationError(msg)
        if self.pool_size < 1:
            msg = f"pool_size must be >= 1, got {self.pool_size}"
            raise ConfigurationError(msg)
        if self.max_redirects < 0:
            msg = f"max_redirects must be >= 0, got {self.max_redirects}"
            raise ConfigurationError(msg)
        if self.private_key is not None and self.certificate is None:
            msg = "private_key requires a certificate"
            raise ConfigurationError(msg)

    @classmethod
    def field_names(cls) -> tuple[str, ...]:
        """Return the names of the configuration fields."""
        return tuple(item.name for item in fields(cls))

    @classmethod
    def resolve(cls, source: ConfigSource, prefix: str, **overrides: Any) -> ClientConfig:
        """Resolve the configuration from a source, overrides and defaults.

        For every field, the value found in ``source`` at
        ``{prefix}.{field}`` wins over the caller override, which wins over
        the built-in default. ``url`` has no built-in default, so it must
        be supplied either as an override or by the source.

        Args:
            source: The configuration source queried once per field.
            prefix: Key prefix of this client in the source.
            **overrides: Caller supplied values replacing the built-in
                defaults. ``None`` values are ignored.

        Returns:
            The resolved configuration.

        Raises:
            ConfigurationError: If an override name is unknown, ``url``
                cannot be resolved, or a value is invalid, or
                ``prefix`` is empty.

        Example:
            ```pycon
            >>> from opinionated_http.core.config import ClientConfig
            >>> from opinionated_http.core.source import HierarchicalConfig
            >>> source = HierarchicalConfig({"fake_service": {"retry_count": 2}})
            >>> config = ClientConfig.resolve(
            ...     source, "fake_service", url="https://example.com", retry_count=5
            ... )
            >>> config.retry_count
            2

            ```
        """
        if not prefix:
            msg = "config_prefix must be a non-empty string"
            raise ConfigurationError(msg)
        unknown = sorted(set(overrides) - set(cls.field_names()))
        if unknown:
            msg = f"Unknown configuration option(s): {', '.join(unknown)}"
            raise ConfigurationError(msg)

        defaults = {item.name: item.default for item in fields(cls)}
        defaults["retry_codes"] = ",".join(str(code) for code in RETRY_STATUS_CODES)

        values: dict[str, Any] = {}
        for name, type_ in _FIELD_TYPES.items():
            key = f"{prefix}.{name}"
            override = overrides.get(name)
            if override is not None:
                values[name] = source.fetch(key, type=type_, default=override)
            elif name == "url":
                values[name] = source.fetch(key, type=type_)
            else:
                values[name] = source.fetch(key, type=type_, default=defaults[name])
        return cls(**values)

    def merge(self, **overrides: Any) -> ClientConfig:
        """Create a new config with the specified parameters overridden.

        Only non-None override values are applied.

        Args:
            **overrides: Keyword arguments for parameters to override.

        Returns:
            A new ClientConfig instance with the overrides applied.

        Raises:
            ConfigurationError: If an override name is unknown.
        """
        unknown = sorted(set(overrides) - set(self.field_names()))
        if unknown:
            msg = f"Unknown configuration option(s): {', '.join(unknown)}"
            raise ConfigurationError(msg)
        filtered_overrides = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **filtered_overrides)

    def to_dict(self) -> dict[str, Any]:
        """Convert the configuration to a dictionary.

        The private key path is masked.

        Returns:
            Dictionary with the configuration values.
        """
        data = {name: getattr(self, name) for name in self.field_names()}
        if data["private_key"] is not None:
            data["private_key"] = "********"
        return data


# Type used to coerce each field read from a configuration source
# retry_codes is parsed by parse_status_codes, whatever its raw type
_FIELD_TYPES: dict[str, type | None] = {
    "url": str,
    "retry_count": int,
    "retry_interval": float,
    "retry_multiplier": float,
    "retry_codes": None,
    "pool_size": int,
    "open_timeout": float,
    "read_timeout": float,
    "idle_timeout": float,
    "pool_timeout": float,
    "warn_timeout": float,
    "proxy": str,
    "max_redirects": int,
    "verify_peer": bool,
    "certificate": str,
    "private_key": str,
}
