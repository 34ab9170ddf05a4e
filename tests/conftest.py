"""Pytest fixtures for the upstream client and the API."""

from typing import Callable, List

import httpx
import pytest
import pytest_asyncio

from backoffice.integrations.clients.real_http.tsoft_client import TSoftClient
from backoffice.utils.config_loader import ConcurrencyConfig, UpstreamConfig
from upstream_fakes import BASE_URL, TOKEN, FakeUpstream


@pytest.fixture
def upstream_config() -> UpstreamConfig:
    return UpstreamConfig(
        base_url=BASE_URL,
        token=TOKEN,
        debug=True,
        timeout_seconds=5,
        concurrency=ConcurrencyConfig(images=5, enhanced_images=3, order_details=5),
    )


@pytest.fixture
def fake_upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest_asyncio.fixture
async def mock_http_client():
    """Factory for AsyncClients served by a FakeUpstream; all are closed on teardown."""
    clients: List[httpx.AsyncClient] = []

    def make(upstream: FakeUpstream) -> httpx.AsyncClient:
        client = httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler))
        clients.append(client)
        return client

    yield make
    for client in clients:
        await client.aclose()


@pytest_asyncio.fixture
async def tsoft_client(upstream_config, fake_upstream, mock_http_client: Callable) -> TSoftClient:
    """TSoftClient wired to fake_upstream; add routes to fake_upstream.routes."""
    yield TSoftClient(upstream_config, http_client=mock_http_client(fake_upstream))
