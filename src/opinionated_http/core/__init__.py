r"""Configuration of the opinionated client.

This package contains the default values, the resolved ``ClientConfig``,
the configuration sources it is resolved from, and the validation
helpers shared by both.
"""

from __future__ import annotations

__all__ = [
    "DEFAULT_RETRY_COUNT",
    "DEFAULT_RETRY_INTERVAL",
    "DEFAULT_RETRY_MULTIPLIER",
    "MISSING",
    "RETRY_STATUS_CODES",
    "ClientConfig",
    "ConfigSource",
    "HierarchicalConfig",
    "parse_status_codes",
    "validate_retry_params",
    "validate_timeouts",
]

from opinionated_http.core.config import (
    DEFAULT_RETRY_COUNT,
    DEFAULT_RETRY_INTERVAL,
    DEFAULT_RETRY_MULTIPLIER,
    RETRY_STATUS_CODES,
    ClientConfig,
)
from opinionated_http.core.source import MISSING, ConfigSource, HierarchicalConfig
from opinionated_http.core.validation import (
    parse_status_codes,
    validate_retry_params,
    validate_timeouts,
)
