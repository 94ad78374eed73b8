from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, Mock

import httpx
import pytest

from apiaction.config import ApiConfig


@pytest.fixture
def calls() -> list[Any]:
    """Shared list recording the order in which hooks run."""
    return []


@pytest.fixture
def mock_response() -> httpx.Response:
    """Create a successful response whose body is ``42``."""
    return httpx.Response(200, text="42")


@pytest.fixture
def mock_transport(mock_response: httpx.Response) -> Mock:
    """Create a mock transport whose ``send`` returns ``mock_response``."""
    return Mock(send=AsyncMock(return_value=mock_response))


@pytest.fixture
def config(mock_transport: Mock) -> ApiConfig:
    """Create a configuration using ``mock_transport``."""
    return ApiConfig(transport=mock_transport)
