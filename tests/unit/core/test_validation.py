r"""Unit tests for the configuration validation helpers."""

from __future__ import annotations

import pytest

from opinionated_http.core import (
    parse_status_codes,
    validate_retry_params,
    validate_timeouts,
)
from opinionated_http.exceptions import ConfigurationError

########################################
#     Tests for parse_status_codes     #
########################################


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("502,503,504", (502, 503, 504)),
        ("502, 503 , 504", (502, 503, 504)),
        ("429,", (429,)),
        (503, (503,)),
        ([502, "503"], (502, 503)),
        ((500,), (500,)),
        ("", ()),
    ],
)
def test_parse_status_codes(value: object, expected: tuple[int, ...]) -> None:
    """Test parsing status codes from strings, integers and iterables."""
    assert parse_status_codes(value) == expected


def test_parse_status_codes_invalid_code() -> None:
    """Test that a non integer code raises ConfigurationError."""
    with pytest.raises(ConfigurationError, match=r"Invalid HTTP status code: 'abc'"):
        parse_status_codes("502,abc")


@pytest.mark.parametrize("code", [99, 600, 0])
def test_parse_status_codes_out_of_range(code: int) -> None:
    """Test that codes outside 100-599 raise ConfigurationError."""
    with pytest.raises(ConfigurationError, match=r"between 100 and 599"):
        parse_status_codes([code])


###########################################
#     Tests for validate_retry_params     #
###########################################


def test_validate_retry_params_valid() -> None:
    """Test that valid retry parameters pass validation."""
    validate_retry_params(retry_count=0, retry_interval=0.0, retry_multiplier=1.0)


def test_validate_retry_params_negative_count() -> None:
    """Test that a negative retry_count raises ConfigurationError."""
    with pytest.raises(ConfigurationError, match=r"retry_count must be >= 0, got -1"):
        validate_retry_params(retry_count=-1, retry_interval=0.01, retry_multiplier=1.8)


def test_validate_retry_params_negative_interval() -> None:
    """Test that a negative retry_interval raises ConfigurationError."""
    with pytest.raises(ConfigurationError, match=r"retry_interval must be >= 0"):
        validate_retry_params(retry_count=1, retry_interval=-0.5, retry_multiplier=1.8)


def test_validate_retry_params_small_multiplier() -> None:
    """Test that a multiplier below 1 raises ConfigurationError."""
    with pytest.raises(ConfigurationError, match=r"retry_multiplier must be >= 1"):
        validate_retry_params(retry_count=1, retry_interval=0.01, retry_multiplier=0.9)


#######################################
#     Tests for validate_timeouts     #
#######################################


def test_validate_timeouts_valid() -> None:
    """Test that positive timeouts pass validation."""
    validate_timeouts(open_timeout=0.1, read_timeout=10)


@pytest.mark.parametrize("timeout", [0, -1.0])
def test_validate_timeouts_not_positive(timeout: float) -> None:
    """Test that non positive timeouts raise ConfigurationError."""
    with pytest.raises(ConfigurationError, match=r"read_timeout must be > 0"):
        validate_timeouts(open_timeout=1.0, read_timeout=timeout)
