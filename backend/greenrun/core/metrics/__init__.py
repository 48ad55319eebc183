from greenrun.core.metrics.base import BaseMetrics, MetricsConfig
from greenrun.core.metrics.connections import ConnectionMetrics
from greenrun.core.metrics.execution import ExecutionMetrics

__all__ = [
    "BaseMetrics",
    "ConnectionMetrics",
    "ExecutionMetrics",
    "MetricsConfig",
]
