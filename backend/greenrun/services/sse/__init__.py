from greenrun.services.sse.stream_service import ExecutionStreamService

__all__ = ["ExecutionStreamService"]
