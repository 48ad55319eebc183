from greenrun.domain.execution.models import (
    CellErrorOutput,
    CurrentCell,
    ErrorDetail,
    ExecutionStatusRecord,
    ExecutionStatusView,
    LogChunk,
    ShutdownMarker,
    SubmissionResult,
)
from greenrun.domain.execution.progress import SOURCE_PREVIEW_LIMIT, compute_progress, truncate_source

__all__ = [
    "CellErrorOutput",
    "CurrentCell",
    "ErrorDetail",
    "ExecutionStatusRecord",
    "ExecutionStatusView",
    "LogChunk",
    "SOURCE_PREVIEW_LIMIT",
    "ShutdownMarker",
    "SubmissionResult",
    "compute_progress",
    "truncate_source",
]
