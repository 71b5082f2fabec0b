r"""Hierarchical configuration sources.

A configuration source is queried once per configuration field when a
client is created. ``HierarchicalConfig`` stores nested mappings (usually
loaded from a YAML file) that are read with dot-notation keys, and lets
environment variables override any value.
"""

from __future__ import annotations

__all__ = ["MISSING", "ConfigSource", "HierarchicalConfig"]

import logging
import os
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import yaml

from opinionated_http.exceptions import ConfigurationError

logger: logging.Logger = logging.getLogger(__name__)

_TRUE_VALUES = frozenset({"true", "1", "yes", "on"})
_FALSE_VALUES = frozenset({"false", "0", "no", "off"})


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


# Sentinel meaning "no default": the key is required
MISSING: Any = _Missing()


@runtime_checkable
class ConfigSource(Protocol):
    """Protocol for hierarchical configuration sources."""

    def fetch(self, key: str, type: type | None = None, default: Any = MISSING) -> Any:
        """Return the value stored at ``key``.

        Args:
            key: Dot-notation key, e.g. ``"fake_service.retry_count"``.
            type: Optional type the value is coerced to.
            default: Value returned when the key is absent. When omitted
                the key is required.

        Raises:
            ConfigurationError: If the key is absent and no default is given.
        """


class HierarchicalConfig:
    """Configuration stored as nested mappings with environment overrides.

    Lookup order (first found wins):

    1. Environment variable named after the key, upper-cased, with dots
       and dashes replaced by underscores, and prefixed with
       ``env_prefix`` if set. ``fake_service.retry_count`` is read from
       ``FAKE_SERVICE_RETRY_COUNT``.
    2. The nested mapping.
    3. The default passed to ``fetch``.

    Args:
        data: Nested mapping holding the configuration values.
        env_prefix: Optional prefix for environment variable names.

    Example:
        ```pycon
        >>> from opinionated_http.core.source import HierarchicalConfig
        >>> config = HierarchicalConfig({"fake_service": {"retry_count": "5"}})
        >>> config.fetch("fake_service.retry_count", type=int)
        5
        >>> config.fetch("fake_service.pool_size", type=int, default=100)
        100

        ```
    """

    def __init__(self, data: dict[str, Any] | None = None, *, env_prefix: str | None = None) -> None:
        self._data: dict[str, Any] = data or {}
        self._env_prefix = env_prefix

    def __repr__(self) -> str:
        return f"{type(self).__name__}(keys={sorted(self._data)}, env_prefix={self._env_prefix!r})"

    @classmethod
    def from_file(cls, path: str | Path, *, env_prefix: str | None = None) -> HierarchicalConfig:
        """Load configuration from a YAML file.

        A missing file yields an empty configuration, so only environment
        variables and defaults apply.

        Args:
            path: Path to the YAML file.
            env_prefix: Optional prefix for environment variable names.

        Returns:
            The loaded configuration.

        Raises:
            ConfigurationError: If the file is not valid YAML or its top
                level is not a mapping.
        """
        path = Path(path)
        if not path.is_file():
            logger.debug(f"Configuration file {path} not found, using an empty configuration")
            return cls(env_prefix=env_prefix)

        try:
            with path.open() as file:
                data = yaml.safe_load(file) or {}
        except yaml.YAMLError as exc:
            msg = f"Failed to load configuration file {path}: {exc}"
            raise ConfigurationError(msg, cause=exc) from exc

        if not isinstance(data, dict):
            msg = f"Configuration file {path} must contain a mapping, got {type(data).__name__}"
            raise ConfigurationError(msg)
        return cls(data, env_prefix=env_prefix)

    def env_var(self, key: str) -> str:
        """Return the environment variable name that overrides ``key``.

        Args:
            key: Dot-notation key.

        Returns:
            The environment variable name.
        """
        name = key.upper().replace(".", "_").replace("-", "_")
        if self._env_prefix:
            name = f"{self._env_prefix.upper()}_{name}"
        return name

    def fetch(self, key: str, type: type | None = None, default: Any = MISSING) -> Any:
        """Return the value stored at ``key``, coerced to ``type``.

        Args:
            key: Dot-notation key.
            type: Optional type the value is coerced to. ``int``, ``float``,
                ``bool`` and ``str`` are supported.
            default: Value returned (without coercion) when the key is
                absent. When omitted the key is required.

        Returns:
            The configured value.

        Raises:
            ConfigurationError: If the key is absent and no default is
                given, or the value cannot be coerced to ``type``.
        """
        value = os.environ.get(self.env_var(key))
        if value is None:
            value = self._lookup(key)
        if value is None:
            if default is MISSING:
                msg = f"Missing required configuration key: {key!r}"
                raise ConfigurationError(msg)
            return default
        return _coerce(key, value, type)

    def _lookup(self, key: str) -> Any:
        current: Any = self._data
        for part in key.split("."):
            if not isinstance(current, dict):
                return None
            current = current.get(part)
            if current is None:
                return None
        return current


def _coerce(key: str, value: Any, type_: type | None) -> Any:
    if type_ is None or isinstance(value, type_) and not (type_ is int and isinstance(value, bool)):
        return value
    if type_ is bool:
        text = str(value).strip().lower()
        if text in _TRUE_VALUES:
            return True
        if text in _FALSE_VALUES:
            return False
        msg = f"Configuration key {key!r} must be a boolean, got {value!r}"
        raise ConfigurationError(msg)
    try:
        return type_(value)
    except (TypeError, ValueError) as exc:
        msg = f"Configuration key {key!r} must be of type {type_.__name__}, got {value!r}"
        raise ConfigurationError(msg, cause=exc) from exc
