import asyncio
import json
from collections.abc import Callable
from pathlib import PurePosixPath
from time import monotonic
from uuid import uuid4

import nbformat
import structlog

from greenrun.core.metrics import ExecutionMetrics
from greenrun.db.repositories.execution_repository import ExecutionRepository
from greenrun.domain.enums.execution import ExecutionStatus, HostStatus
from greenrun.domain.exceptions import DomainError, InfrastructureError
from greenrun.domain.execution import paths
from greenrun.domain.execution.exceptions import InvalidNotebookError, SubmissionError
from greenrun.domain.execution.models import ExecutionStatusRecord, SubmissionResult
from greenrun.infrastructure.compute import ComputeHost, HostConfig, render_bootstrap_script
from greenrun.infrastructure.storage import ObjectStorage
from greenrun.services.polling import poll_until
from greenrun.settings import Settings

NOTEBOOK_CONTENT_TYPE = "application/x-ipynb+json"

# Host states that mean the bootstrap has run (a short notebook may already be done)
_STARTED = frozenset({HostStatus.IN_SERVICE, HostStatus.STOPPING, HostStatus.STOPPED})


def validate_notebook(notebook_bytes: bytes, file_name: str) -> str:
    """Return the bare file name of a readable .ipynb upload or raise InvalidNotebookError."""
    name = PurePosixPath(file_name.replace("\\", "/")).name
    if not name or not name.lower().endswith(".ipynb"):
        raise InvalidNotebookError(f"Expected an .ipynb file, got {file_name!r}")
    if not notebook_bytes:
        raise InvalidNotebookError(f"Notebook {name!r} is empty")
    try:
        text = notebook_bytes.decode("utf-8")
        document = json.loads(text)
    except (UnicodeDecodeError, ValueError) as e:
        raise InvalidNotebookError(f"Notebook {name!r} is not valid JSON: {e}") from e
    if not isinstance(document, dict):
        raise InvalidNotebookError(f"Notebook {name!r} must be a JSON object, got {type(document).__name__}")
    try:
        nbformat.validate(nbformat.reads(text, as_version=4))
    except (nbformat.ValidationError, AttributeError, KeyError, TypeError, ValueError) as e:
        raise InvalidNotebookError(f"Notebook {name!r} is not a valid notebook: {e}") from e
    return name


class LaunchOrchestrator:
    """Turns an uploaded notebook into a running compute host that executes it.

    Anything that goes wrong before the host is confirmed started is raised as
    SubmissionError and the host, if one was created, is deleted. Later failures
    are reported by the executor through the status store.
    """

    def __init__(
        self,
        storage: ObjectStorage,
        repository: ExecutionRepository,
        compute: ComputeHost,
        settings: Settings,
        metrics: ExecutionMetrics,
        logger: structlog.stdlib.BoundLogger,
        id_factory: Callable[[], str] = lambda: uuid4().hex,
    ) -> None:
        self._storage = storage
        self._repository = repository
        self._compute = compute
        self._settings = settings
        self._metrics = metrics
        self._logger = logger
        self._id_factory = id_factory

    async def submit(self, notebook_bytes: bytes, file_name: str, auto_execute: bool = True) -> SubmissionResult:
        file_name = validate_notebook(notebook_bytes, file_name)
        execution_id = self._id_factory()
        logger = self._logger.bind(execution_id=execution_id)

        source_key = paths.source_notebook_key(execution_id, file_name)
        source_uri = self._storage.uri(source_key)
        output_uri = self._storage.uri(paths.executed_notebook_key(execution_id, file_name))

        handle: str | None = None
        try:
            await asyncio.to_thread(self._storage.put, source_key, notebook_bytes, NOTEBOOK_CONTENT_TYPE)
            logger.info("Notebook uploaded", source=source_uri)

            script = render_bootstrap_script(
                execution_id=execution_id,
                file_name=file_name,
                bucket=self._storage.bucket,
                notebook_uri=source_uri,
                output_uri=output_uri,
                workdir=self._settings.EXECUTOR_WORKDIR,
                auto_execute=auto_execute,
            )
            await asyncio.to_thread(
                self._storage.put, paths.bootstrap_key(execution_id), script.encode("utf-8"), "text/x-shellscript"
            )

            if auto_execute:
                await self._repository.put_status(
                    ExecutionStatusRecord(
                        execution_id=execution_id,
                        status=ExecutionStatus.PENDING,
                        notebook_path=source_uri,
                        output_path=output_uri,
                    )
                )

            handle = await asyncio.to_thread(
                self._compute.create_and_start, HostConfig(execution_id=execution_id, bootstrap_script=script)
            )
            logger.info("Compute host created", instance_handle=handle)
            await self._wait_until_started(execution_id, handle)
        except DomainError as e:
            self._metrics.record_submission("failed")
            logger.error("Submission failed", error=e.message, instance_handle=handle)
            if handle is not None:
                await self._discard_host(handle, logger)
            raise SubmissionError(f"Failed to launch notebook {file_name}: {e.message}", execution_id) from e

        self._metrics.record_submission("submitted")
        return SubmissionResult(
            execution_id=execution_id,
            instance_handle=handle,
            source_path=source_uri,
            output_path=output_uri,
            status_path=self._storage.uri(paths.status_key(execution_id)),
            auto_execute=auto_execute,
        )

    async def cleanup(self, instance_handle: str) -> None:
        await asyncio.to_thread(self._compute.delete, instance_handle)
        self._logger.info("Compute host deleted", instance_handle=instance_handle)

    async def _wait_until_started(self, execution_id: str, handle: str) -> None:
        started = monotonic()
        status = await poll_until(
            lambda: asyncio.to_thread(self._compute.describe, handle),
            lambda s: s in _STARTED or s is HostStatus.FAILED,
            interval=self._settings.HOST_READY_POLL_INTERVAL,
            max_attempts=self._settings.HOST_READY_MAX_ATTEMPTS,
            retry_on=(InfrastructureError,),
            what=f"host {handle} to start",
        )
        if status is HostStatus.FAILED and not await self._execution_began(execution_id):
            raise InfrastructureError(f"Compute host {handle} failed to start")
        self._metrics.record_host_ready(monotonic() - started)

    async def _execution_began(self, execution_id: str) -> bool:
        # A host that ran the executor and exited non-zero also reports FAILED
        record = await self._repository.get_status(execution_id)
        return record is not None and record.status is not ExecutionStatus.PENDING

    async def _discard_host(self, handle: str, logger: structlog.stdlib.BoundLogger) -> None:
        try:
            await asyncio.to_thread(self._compute.delete, handle)
        except DomainError:
            logger.warning("Failed to delete host after failed submission", instance_handle=handle, exc_info=True)
