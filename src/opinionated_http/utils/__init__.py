r"""Utilities shared across the package."""

from __future__ import annotations

__all__ = [
    "StructuredFormatter",
    "correlation_id",
    "log_structured",
]

from opinionated_http.utils.structured_logging import (
    StructuredFormatter,
    correlation_id,
    log_structured,
)
