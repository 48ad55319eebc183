import structlog

from greenrun.db.repositories.execution_repository import ExecutionRepository
from greenrun.domain.enums.execution import ExecutionStatus
from greenrun.domain.exceptions import InvalidStateError, NotFoundError
from greenrun.domain.execution.exceptions import ExecutionNotFoundError
from greenrun.domain.execution.models import ExecutionStatusRecord, ExecutionStatusView
from greenrun.services.polling import TRANSIENT_ERRORS, poll_until
from greenrun.settings import Settings


class ExecutionStatusService:
    """Read-only view of executions for API handlers: snapshots, bounded waits and downloads."""

    def __init__(
        self,
        repository: ExecutionRepository,
        settings: Settings,
        logger: structlog.stdlib.BoundLogger,
    ) -> None:
        self._repository = repository
        self._settings = settings
        self._logger = logger

    async def get_status(self, execution_id: str) -> ExecutionStatusView:
        """Current snapshot; an execution with no record yet reads as PENDING."""
        record = await self._repository.get_status(execution_id)
        if record is None:
            record = ExecutionStatusRecord.pending(execution_id)
        marker = await self._repository.get_shutdown_marker(execution_id)
        return ExecutionStatusView.from_record(record, marker)

    async def wait_for_completion(
        self,
        execution_id: str,
        timeout: float | None = None,
        interval: float | None = None,
    ) -> ExecutionStatusView:
        """Poll until COMPLETED or FAILED; read failures are retried, PollTimeoutError when `timeout` elapses first."""
        return await poll_until(
            lambda: self.get_status(execution_id),
            lambda view: view.is_terminal,
            interval=interval if interval is not None else self._settings.STATUS_POLL_INTERVAL,
            timeout=timeout if timeout is not None else self._settings.STATUS_WAIT_TIMEOUT,
            retry_on=TRANSIENT_ERRORS,
            what=f"execution {execution_id} to finish",
        )

    async def get_executed_notebook(self, execution_id: str) -> tuple[str, bytes]:
        """File name and content of the executed notebook of a COMPLETED execution."""
        record = await self._repository.get_status(execution_id)
        if record is None:
            raise ExecutionNotFoundError(execution_id)
        if record.status is not ExecutionStatus.COMPLETED:
            raise InvalidStateError(f"Execution {execution_id} not completed yet (status: {record.status})")
        if not record.output_path:
            raise InvalidStateError(f"Execution {execution_id} has no output path")

        content = await self._repository.read_uri(record.output_path)
        if content is None:
            raise NotFoundError("Executed notebook", execution_id)
        self._logger.info("Serving executed notebook", execution_id=execution_id, size=len(content))
        return f"notebook-{execution_id}.ipynb", content
