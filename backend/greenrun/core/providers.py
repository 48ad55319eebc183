from collections.abc import AsyncIterator, Iterator
from pathlib import Path

import boto3
import httpx
import redis.asyncio as redis
import structlog
from botocore.client import BaseClient
from dishka import Provider, Scope, from_context, provide

from greenrun.core.k8s_clients import K8sClients, close_k8s_clients, create_k8s_clients
from greenrun.core.logging import setup_logger
from greenrun.core.metrics import ConnectionMetrics, ExecutionMetrics
from greenrun.db.repositories import ExecutionRepository, StatusStore
from greenrun.domain.execution import paths
from greenrun.infrastructure.compute import ComputeHost, KubernetesComputeHost, NotebookHostPodBuilder
from greenrun.infrastructure.storage import ObjectStorage, S3ObjectStorage
from greenrun.services.carbon import CarbonIntensityService
from greenrun.services.executor import ExecutionRequest, NotebookExecutor, NotebookRunner, default_client_factory
from greenrun.services.launch_orchestrator import LaunchOrchestrator
from greenrun.services.shutdown import ShutdownCoordinator
from greenrun.services.sse import ExecutionStreamService
from greenrun.services.status_service import ExecutionStatusService
from greenrun.settings import Settings


class SettingsProvider(Provider):
    """Provides Settings from the container context (passed by main.py, the executor CLI or tests)."""

    scope = Scope.APP

    settings = from_context(provides=Settings, scope=Scope.APP)


class LoggingProvider(Provider):
    scope = Scope.APP

    @provide
    def get_logger(self, settings: Settings) -> structlog.stdlib.BoundLogger:
        return setup_logger(settings.LOG_LEVEL)


class ExecutorContextProvider(Provider):
    """The executor configures its own logger (it also writes execution.log) and knows its request up front."""

    scope = Scope.APP

    logger = from_context(provides=structlog.stdlib.BoundLogger, scope=Scope.APP)
    request = from_context(provides=ExecutionRequest, scope=Scope.APP)


class RedisProvider(Provider):
    scope = Scope.APP

    @provide
    async def get_redis_client(
        self, settings: Settings, logger: structlog.stdlib.BoundLogger
    ) -> AsyncIterator[redis.Redis]:
        client = redis.Redis(
            host=settings.REDIS_HOST,
            port=settings.REDIS_PORT,
            db=settings.REDIS_DB,
            password=settings.REDIS_PASSWORD,
            ssl=settings.REDIS_SSL,
            max_connections=settings.REDIS_MAX_CONNECTIONS,
            socket_connect_timeout=5,
            socket_timeout=5,
        )
        logger.info("Redis client created", host=settings.REDIS_HOST, port=settings.REDIS_PORT)
        yield client
        await client.aclose()


class HttpClientProvider(Provider):
    scope = Scope.APP

    @provide
    async def get_http_client(self, settings: Settings) -> AsyncIterator[httpx.AsyncClient]:
        async with httpx.AsyncClient(timeout=settings.CARBON_REQUEST_TIMEOUT) as client:
            yield client


class StorageClientProvider(Provider):
    scope = Scope.APP

    @provide
    def get_s3_client(self, settings: Settings) -> BaseClient:
        return boto3.client(
            "s3",
            region_name=settings.STORAGE_REGION,
            endpoint_url=settings.STORAGE_ENDPOINT_URL,
            aws_access_key_id=settings.STORAGE_ACCESS_KEY_ID,
            aws_secret_access_key=settings.STORAGE_SECRET_ACCESS_KEY,
        )


class StorageProvider(Provider):
    scope = Scope.APP

    @provide
    def get_object_storage(
        self, client: BaseClient, settings: Settings, logger: structlog.stdlib.BoundLogger
    ) -> ObjectStorage:
        return S3ObjectStorage(client, settings.STORAGE_BUCKET, logger)


class KubernetesProvider(Provider):
    scope = Scope.APP

    @provide
    def get_k8s_clients(self, settings: Settings, logger: structlog.stdlib.BoundLogger) -> Iterator[K8sClients]:
        clients = create_k8s_clients(logger, kubeconfig_path=settings.KUBERNETES_CONFIG_PATH)
        yield clients
        close_k8s_clients(clients)

    @provide
    def get_pod_builder(self, settings: Settings) -> NotebookHostPodBuilder:
        return NotebookHostPodBuilder.from_settings(settings)

    @provide
    def get_compute_host(
        self,
        clients: K8sClients,
        pod_builder: NotebookHostPodBuilder,
        logger: structlog.stdlib.BoundLogger,
    ) -> ComputeHost:
        return KubernetesComputeHost(clients.v1, pod_builder, logger)


class MetricsProvider(Provider):
    scope = Scope.APP

    @provide
    def get_execution_metrics(self, settings: Settings) -> ExecutionMetrics:
        return ExecutionMetrics(settings)

    @provide
    def get_connection_metrics(self, settings: Settings) -> ConnectionMetrics:
        return ConnectionMetrics(settings)


class RepositoryProvider(Provider):
    scope = Scope.APP

    @provide
    def get_status_store(self, storage: ObjectStorage, logger: structlog.stdlib.BoundLogger) -> StatusStore:
        return StatusStore(storage, logger)

    @provide
    def get_execution_repository(
        self, store: StatusStore, logger: structlog.stdlib.BoundLogger
    ) -> ExecutionRepository:
        return ExecutionRepository(store, logger)


class ServicesProvider(Provider):
    scope = Scope.APP

    @provide
    def get_status_service(
        self,
        repository: ExecutionRepository,
        settings: Settings,
        logger: structlog.stdlib.BoundLogger,
    ) -> ExecutionStatusService:
        return ExecutionStatusService(repository, settings, logger)

    @provide
    def get_stream_service(
        self,
        repository: ExecutionRepository,
        status_service: ExecutionStatusService,
        settings: Settings,
        metrics: ConnectionMetrics,
        logger: structlog.stdlib.BoundLogger,
    ) -> ExecutionStreamService:
        return ExecutionStreamService(repository, status_service, settings, metrics, logger)

    @provide
    def get_launch_orchestrator(
        self,
        storage: ObjectStorage,
        repository: ExecutionRepository,
        compute: ComputeHost,
        settings: Settings,
        metrics: ExecutionMetrics,
        logger: structlog.stdlib.BoundLogger,
    ) -> LaunchOrchestrator:
        return LaunchOrchestrator(storage, repository, compute, settings, metrics, logger)

    @provide
    def get_carbon_service(
        self,
        http_client: httpx.AsyncClient,
        redis_client: redis.Redis,
        settings: Settings,
        logger: structlog.stdlib.BoundLogger,
    ) -> CarbonIntensityService:
        return CarbonIntensityService(http_client, redis_client, settings, logger)


class ExecutorProvider(Provider):
    """Wiring for the executor process on a compute host; storage targets the bucket it was launched with."""

    scope = Scope.APP

    @provide
    def get_object_storage(
        self, client: BaseClient, request: ExecutionRequest, logger: structlog.stdlib.BoundLogger
    ) -> ObjectStorage:
        return S3ObjectStorage(client, request.output_bucket, logger)

    @provide
    def get_shutdown_coordinator(
        self,
        store: StatusStore,
        compute: ComputeHost,
        settings: Settings,
        metrics: ExecutionMetrics,
        logger: structlog.stdlib.BoundLogger,
    ) -> ShutdownCoordinator:
        return ShutdownCoordinator(
            store,
            compute,
            logger,
            grace_seconds=settings.SHUTDOWN_GRACE_SECONDS,
            host_env=settings.HOST_INSTANCE_ENV,
            local_marker_path=Path(settings.EXECUTOR_WORKDIR) / paths.LOCAL_SHUTDOWN_REASON_FILE,
            metrics=metrics,
        )

    @provide
    def get_notebook_runner(self, settings: Settings, logger: structlog.stdlib.BoundLogger) -> NotebookRunner:
        factory = default_client_factory(
            settings.EXECUTOR_KERNEL_NAME, settings.EXECUTOR_CELL_TIMEOUT, working_dir=settings.EXECUTOR_WORKDIR
        )
        return NotebookRunner(factory, logger)

    @provide
    def get_notebook_executor(
        self,
        store: StatusStore,
        runner: NotebookRunner,
        coordinator: ShutdownCoordinator,
        settings: Settings,
        metrics: ExecutionMetrics,
        logger: structlog.stdlib.BoundLogger,
    ) -> NotebookExecutor:
        return NotebookExecutor(
            store,
            runner,
            coordinator,
            logger,
            workdir=Path(settings.EXECUTOR_WORKDIR),
            log_flush_interval=settings.LOG_FLUSH_INTERVAL,
            metrics=metrics,
        )
