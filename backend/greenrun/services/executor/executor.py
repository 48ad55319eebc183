from dataclasses import dataclass
from pathlib import Path

import nbformat
import structlog
from nbformat import NotebookNode

from greenrun.core.metrics import ExecutionMetrics
from greenrun.db.repositories.status_store import StatusStore
from greenrun.domain.enums.execution import LogType
from greenrun.domain.exceptions import DomainError
from greenrun.domain.execution import paths
from greenrun.infrastructure.storage import key_from_uri
from greenrun.services.executor.cell_observer import CompositeObserver
from greenrun.services.executor.log_flusher import LogFlusher
from greenrun.services.executor.notebook import reset_execution_state
from greenrun.services.executor.output_recorder import CellOutputRecorder
from greenrun.services.executor.runner import CellExecutionFailure, NotebookRunner
from greenrun.services.executor.tracker import StatusTracker
from greenrun.services.shutdown import ShutdownCoordinator

EXIT_COMPLETED = 0
EXIT_FAILED = 1

NOTEBOOK_CONTENT_TYPE = "application/x-ipynb+json"


@dataclass(frozen=True)
class ExecutionRequest:
    """Arguments of one executor invocation on a compute host."""

    input_notebook: Path
    output_notebook: Path
    execution_id: str
    output_bucket: str
    status_key: str
    notebook_source_path: str
    output_path: str


class NotebookExecutor:
    """Runs one notebook on the compute host and reports on it through the status store.

    Success: executed notebook persisted to `output_path`, then COMPLETED, exit 0.
    Failure (cell or otherwise): FAILED with error context, partial notebook and logs
    uploaded best-effort, then the host is shut down, exit 1.
    """

    def __init__(
        self,
        store: StatusStore,
        runner: NotebookRunner,
        coordinator: ShutdownCoordinator,
        logger: structlog.stdlib.BoundLogger,
        workdir: Path,
        log_flush_interval: float = 2.0,
        metrics: ExecutionMetrics | None = None,
    ) -> None:
        self._store = store
        self._storage = store.storage
        self._runner = runner
        self._coordinator = coordinator
        self._logger = logger
        self._workdir = workdir
        self._log_flush_interval = log_flush_interval
        self._metrics = metrics

    def log_path(self, log_type: LogType) -> Path:
        return self._workdir / paths.log_file_name(log_type)

    def execute(self, request: ExecutionRequest) -> int:
        execution_id = request.execution_id
        logger = self._logger.bind(execution_id=execution_id)
        if request.status_key != paths.status_key(execution_id):
            logger.warning(
                "Ignoring non-canonical status key", given=request.status_key, used=paths.status_key(execution_id)
            )

        tracker = StatusTracker(
            self._store,
            execution_id,
            notebook_path=request.notebook_source_path,
            output_path=request.output_path,
            logger=logger,
            metrics=self._metrics,
        )
        flusher = LogFlusher(
            self._storage,
            execution_id,
            {log_type: self.log_path(log_type) for log_type in LogType},
            interval=self._log_flush_interval,
            logger=logger,
        )
        observer = CompositeObserver([CellOutputRecorder(self.log_path(LogType.CELL_OUTPUT)), tracker])

        flusher.start()
        nb: NotebookNode | None = None
        try:
            try:
                nb = self._load_notebook(request, logger)
                tracker.start(nb)
                self._runner.run(nb, observer)
                self._persist_output(nb, request, logger)
            except CellExecutionFailure as failure:
                logger.error("Cell execution failed", cell_index=failure.index, error=str(failure.error))
                self._persist_partial(nb, execution_id, logger)
                flusher.stop()
                self._shutdown(flusher, execution_id, f"Cell execution failed at index {failure.index}")
                return EXIT_FAILED
            except Exception as e:
                logger.error("Notebook execution failed", exc_info=True)
                tracker.fail(e)
                self._persist_partial(nb, execution_id, logger)
                flusher.stop()
                self._shutdown(flusher, execution_id, f"Notebook execution failed: {str(e)[:200]}")
                return EXIT_FAILED

            if not tracker.complete():
                logger.error("Final COMPLETED status could not be written")
            logger.info("Notebook execution completed", output_path=request.output_path)
            return EXIT_COMPLETED
        finally:
            flusher.stop()

    def _shutdown(self, flusher: LogFlusher, execution_id: str, reason: str) -> None:
        # Ships the coordinator's own log lines: once before the grace period, once after the stop request
        self._coordinator.shutdown(execution_id, reason, flush_logs=lambda: flusher.flush(force=True))
        flusher.flush(force=True)

    def _load_notebook(self, request: ExecutionRequest, logger: structlog.stdlib.BoundLogger) -> NotebookNode:
        path = request.input_notebook
        if not path.exists():
            logger.info("Downloading notebook", source=request.notebook_source_path)
            data = self._storage.get(key_from_uri(self._storage, request.notebook_source_path))
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        nb = nbformat.read(str(path), as_version=4)
        reset_execution_state(nb)
        return nb

    def _persist_output(
        self, nb: NotebookNode, request: ExecutionRequest, logger: structlog.stdlib.BoundLogger
    ) -> None:
        nbformat.write(nb, str(request.output_notebook))
        self._storage.put(
            key_from_uri(self._storage, request.output_path),
            request.output_notebook.read_bytes(),
            NOTEBOOK_CONTENT_TYPE,
        )
        logger.info("Executed notebook saved", output_path=request.output_path)

    def _persist_partial(
        self, nb: NotebookNode | None, execution_id: str, logger: structlog.stdlib.BoundLogger
    ) -> None:
        if nb is None:
            return
        local = self._workdir / paths.partial_file_name(execution_id)
        try:
            nbformat.write(nb, str(local))
            self._storage.put(paths.partial_notebook_key(execution_id), local.read_bytes(), NOTEBOOK_CONTENT_TYPE)
            logger.info("Partial notebook saved", key=paths.partial_notebook_key(execution_id))
        except (OSError, ValueError, DomainError):
            logger.warning("Failed to save partial notebook", exc_info=True)
