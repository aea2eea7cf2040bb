"""Shared fixtures for the client library tests."""

from typing import AsyncGenerator

import pytest
import pytest_asyncio

from venice_client.core.config import ClientSettings
from venice_client.http.transport import Transport

BASE_URL = "https://api.test.local/api/v1"
API_KEY = "test-api-key"


@pytest.fixture
def client_settings() -> ClientSettings:
    """Settings pointing at a mocked base URL."""
    return ClientSettings(api_key=API_KEY, base_url=BASE_URL)


@pytest_asyncio.fixture
async def transport(client_settings) -> AsyncGenerator[Transport, None]:
    transport = Transport(client_settings)
    yield transport
    await transport.aclose()
