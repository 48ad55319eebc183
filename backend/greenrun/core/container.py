import structlog
from dishka import AsyncContainer, Container, make_async_container, make_container
from dishka.integrations.fastapi import FastapiProvider

from greenrun.core.providers import (
    ExecutorContextProvider,
    ExecutorProvider,
    HttpClientProvider,
    KubernetesProvider,
    LoggingProvider,
    MetricsProvider,
    RedisProvider,
    RepositoryProvider,
    ServicesProvider,
    SettingsProvider,
    StorageClientProvider,
    StorageProvider,
)
from greenrun.services.executor import ExecutionRequest
from greenrun.settings import Settings


def create_app_container(settings: Settings) -> AsyncContainer:
    """
    Create the application DI container.
    """
    return make_async_container(
        SettingsProvider(),
        LoggingProvider(),
        RedisProvider(),
        HttpClientProvider(),
        StorageClientProvider(),
        StorageProvider(),
        KubernetesProvider(),
        MetricsProvider(),
        RepositoryProvider(),
        ServicesProvider(),
        FastapiProvider(),
        context={Settings: settings},
    )


def create_executor_container(
    settings: Settings, request: ExecutionRequest, logger: structlog.stdlib.BoundLogger
) -> Container:
    """
    Create a minimal synchronous DI container for the notebook executor on a compute host.
    Includes only settings, storage, compute (for self-shutdown), metrics and executor wiring.
    """
    return make_container(
        SettingsProvider(),
        ExecutorContextProvider(),
        StorageClientProvider(),
        KubernetesProvider(),
        MetricsProvider(),
        RepositoryProvider(),
        ExecutorProvider(),
        context={Settings: settings, ExecutionRequest: request, structlog.stdlib.BoundLogger: logger},
    )
