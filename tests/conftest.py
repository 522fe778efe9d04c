from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, Mock

import httpx
import pytest

from storepipe.credential import RefreshableCredential, StaticCredential
from storepipe.endpoints import EndpointContract
from tests.helpers import make_contract


@pytest.fixture
def contract() -> EndpointContract:
    """Create an RPC endpoint contract for testing."""
    return make_contract()


@pytest.fixture
def static_credential() -> StaticCredential:
    """Create a credential that cannot be refreshed."""
    return StaticCredential("old-token")


@pytest.fixture
def refresh_func() -> Mock:
    """Create a refresh function returning a new access token."""
    return Mock(return_value="new-token")


@pytest.fixture
def refreshable_credential(refresh_func: Mock) -> RefreshableCredential:
    """Create a credential whose refresh function is a mock."""
    return RefreshableCredential("old-token", refresh_func=refresh_func)


@pytest.fixture
def mock_transport() -> Mock:
    """Create a mock synchronous transport."""
    return Mock(send=Mock())


@pytest.fixture
def mock_async_transport() -> Mock:
    """Create a mock asynchronous transport."""
    return Mock(send=AsyncMock())


@pytest.fixture
def mock_client() -> httpx.Client:
    """Create a mock httpx.Client for testing."""
    return MagicMock(spec=httpx.Client)


@pytest.fixture
def mock_callback() -> Mock:
    """Create a mock callback function for testing callbacks."""
    return Mock()


@pytest.fixture
def mock_async_client() -> httpx.AsyncClient:
    """Create a mock httpx.AsyncClient for testing."""
    return MagicMock(spec=httpx.AsyncClient)
