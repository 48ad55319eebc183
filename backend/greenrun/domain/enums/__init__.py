from greenrun.domain.enums.execution import (
    ExecutionStatus,
    HostStatus,
    LogType,
)
from greenrun.domain.enums.sse import SSEEventType

__all__ = [
    "ExecutionStatus",
    "HostStatus",
    "LogType",
    "SSEEventType",
]
