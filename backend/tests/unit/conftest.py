from collections.abc import AsyncGenerator

import httpx
import pytest
import pytest_asyncio
import structlog
from dishka import AsyncContainer, make_async_container
from dishka.integrations.fastapi import FastapiProvider

from greenrun.core.metrics import ConnectionMetrics, ExecutionMetrics
from greenrun.core.providers import MetricsProvider, RepositoryProvider, ServicesProvider, SettingsProvider
from greenrun.db.repositories import ExecutionRepository, StatusStore
from greenrun.infrastructure.compute import ComputeHost
from greenrun.infrastructure.storage import ObjectStorage
from greenrun.settings import Settings
from tests.helpers.fakes import (
    FakeBoundaryClientProvider,
    FakeComputeHost,
    FakeComputeProvider,
    FakeStorageProvider,
    InMemoryObjectStorage,
)

_logger = structlog.get_logger("test.unit")


def _carbon_api_unreachable(request: httpx.Request) -> httpx.Response:
    return httpx.Response(503, json={"error": "carbon API not mocked in this test"})


@pytest.fixture
def storage(test_settings: Settings) -> InMemoryObjectStorage:
    return InMemoryObjectStorage(bucket=test_settings.STORAGE_BUCKET)


@pytest.fixture
def compute() -> FakeComputeHost:
    return FakeComputeHost()


@pytest.fixture
def carbon_transport() -> httpx.MockTransport:
    """Override in a test module to serve canned carbon API responses."""
    return httpx.MockTransport(_carbon_api_unreachable)


@pytest.fixture
def status_store(storage: InMemoryObjectStorage) -> StatusStore:
    return StatusStore(storage, _logger)


@pytest.fixture
def execution_repository(status_store: StatusStore) -> ExecutionRepository:
    return ExecutionRepository(status_store, _logger)


@pytest.fixture
def execution_metrics(test_settings: Settings) -> ExecutionMetrics:
    return ExecutionMetrics(test_settings)


@pytest.fixture
def connection_metrics(test_settings: Settings) -> ConnectionMetrics:
    return ConnectionMetrics(test_settings)


@pytest_asyncio.fixture
async def unit_container(
    test_settings: Settings,
    storage: InMemoryObjectStorage,
    compute: FakeComputeHost,
    carbon_transport: httpx.MockTransport,
) -> AsyncGenerator[AsyncContainer, None]:
    """DI container for unit tests with fake boundary clients.

    Provides:
    - In-memory object storage, fake compute host, FakeRedis, mocked carbon API (boundaries)
    - Real metrics, repositories, services (internal)
    """
    async with httpx.AsyncClient(transport=carbon_transport) as http_client:
        container = make_async_container(
            SettingsProvider(),
            FakeBoundaryClientProvider(),
            FakeStorageProvider(),
            FakeComputeProvider(),
            MetricsProvider(),
            RepositoryProvider(),
            ServicesProvider(),
            FastapiProvider(),
            context={
                Settings: test_settings,
                ObjectStorage: storage,
                ComputeHost: compute,
                httpx.AsyncClient: http_client,
            },
        )
        yield container
        await container.close()
