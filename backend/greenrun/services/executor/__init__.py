from greenrun.services.executor.cell_observer import CellObserver, CompositeObserver
from greenrun.services.executor.executor import EXIT_COMPLETED, EXIT_FAILED, ExecutionRequest, NotebookExecutor
from greenrun.services.executor.log_flusher import LogFlusher
from greenrun.services.executor.output_recorder import CellOutputRecorder
from greenrun.services.executor.runner import CellExecutionFailure, NotebookRunner, default_client_factory
from greenrun.services.executor.tracker import StatusTracker

__all__ = [
    "EXIT_COMPLETED",
    "EXIT_FAILED",
    "CellExecutionFailure",
    "CellObserver",
    "CellOutputRecorder",
    "CompositeObserver",
    "ExecutionRequest",
    "LogFlusher",
    "NotebookExecutor",
    "NotebookRunner",
    "StatusTracker",
    "default_client_factory",
]
