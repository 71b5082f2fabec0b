from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import Mock, patch

import httpx
import pytest

from tests.helpers import FakeLogger, FakeTransport

if TYPE_CHECKING:
    from collections.abc import Generator


@pytest.fixture
def mock_sleep() -> Generator[Mock, None, None]:
    """Patch time.sleep to make tests run faster."""
    with patch("time.sleep", return_value=None) as mock:
        yield mock


@pytest.fixture
def mock_response() -> httpx.Response:
    """Create a mock httpx.Response for testing."""
    return Mock(spec=httpx.Response, status_code=200, reason_phrase="OK")


@pytest.fixture
def fake_logger() -> FakeLogger:
    """Create an in-memory logger recording every event."""
    return FakeLogger()


@pytest.fixture
def fake_transport() -> FakeTransport:
    """Create a transport answering 200 OK until told otherwise."""
    return FakeTransport()
