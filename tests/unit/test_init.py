r"""Unit tests for package initialization and metadata."""

from __future__ import annotations

import opinionated_http


def test_package_version_is_string() -> None:
    """Test that __version__ is a string."""
    assert isinstance(opinionated_http.__version__, str)


def test_package_version_format() -> None:
    """Test that __version__ follows semantic versioning."""
    assert "." in opinionated_http.__version__


def test_all_exports_defined() -> None:
    """Test that all items in __all__ are defined in the module."""
    for name in opinionated_http.__all__:
        assert hasattr(opinionated_http, name), f"{name} is in __all__ but not defined in module"


def test_client_exported() -> None:
    """Test that the client is available at the package level."""
    from opinionated_http.client import Client

    assert opinionated_http.Client is Client
