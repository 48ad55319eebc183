import codecs
import json
from collections.abc import AsyncGenerator, Awaitable, Callable
from time import monotonic
from typing import Any

import structlog

from greenrun.core.metrics import ConnectionMetrics
from greenrun.db.repositories.execution_repository import ExecutionRepository
from greenrun.domain.enums.execution import LogType
from greenrun.domain.enums.sse import SSEEventType
from greenrun.domain.execution.exceptions import LogNotFoundError
from greenrun.domain.execution.models import ExecutionStatusRecord, ExecutionStatusView, LogChunk
from greenrun.services.polling import TRANSIENT_ERRORS, poll
from greenrun.services.status_service import ExecutionStatusService
from greenrun.settings import Settings

DisconnectCheck = Callable[[], Awaitable[bool]]


def is_regression(new: ExecutionStatusRecord, last: ExecutionStatusRecord) -> bool:
    """A snapshot older than one already sent (stale read); streams never move backwards."""
    if new.status.rank != last.status.rank:
        return new.status.rank < last.status.rank
    return new.cells_completed < last.cells_completed


class ExecutionStreamService:
    """Server-sent event streams over the status store: status snapshots and raw log tails."""

    def __init__(
        self,
        repository: ExecutionRepository,
        status_service: ExecutionStatusService,
        settings: Settings,
        metrics: ConnectionMetrics,
        logger: structlog.stdlib.BoundLogger,
    ) -> None:
        self.repository = repository
        self.status_service = status_service
        self.metrics = metrics
        self.logger = logger
        self.poll_interval = settings.SSE_POLL_INTERVAL

    async def check_log_available(self, execution_id: str, log_type: LogType) -> bool:
        """Whether the log can be tailed now.

        False when the execution is known but has not written this log yet;
        raises LogNotFoundError when nothing is known about the execution at all.
        """
        if await self.repository.read_log(execution_id, log_type, 0) is not None:
            return True
        if await self.repository.get_status(execution_id) is not None:
            return False
        raise LogNotFoundError(execution_id)

    async def create_status_stream(
        self,
        execution_id: str,
        is_disconnected: DisconnectCheck | None = None,
    ) -> AsyncGenerator[dict[str, Any], None]:
        endpoint = "status"
        started = monotonic()
        self.metrics.increment_sse_connections(endpoint)
        last: ExecutionStatusView | None = None
        try:
            async for view in poll(
                lambda: self.status_service.get_status(execution_id),
                interval=self.poll_interval,
                retry_on=TRANSIENT_ERRORS,
                what=f"status of {execution_id}",
            ):
                if is_disconnected is not None and await is_disconnected():
                    self.logger.info("Status stream client disconnected", execution_id=execution_id)
                    break

                if last is not None and is_regression(view, last):
                    continue
                if last is None or view != last:
                    yield self._format_event(SSEEventType.STATUS, view.to_wire(), endpoint)
                    last = view
                if view.is_terminal:
                    break
        except Exception as e:
            self.logger.error("Status stream failed", execution_id=execution_id, exc_info=True)
            yield self._format_event(SSEEventType.ERROR, {"error": str(e)}, endpoint)
        finally:
            self.metrics.decrement_sse_connections(endpoint)
            self.metrics.record_sse_connection_duration(monotonic() - started, endpoint)
            self.logger.info("Status stream closed", execution_id=execution_id)

    async def create_log_stream(
        self,
        execution_id: str,
        log_type: LogType,
        log_available: bool = True,
        is_disconnected: DisconnectCheck | None = None,
    ) -> AsyncGenerator[dict[str, Any], None]:
        """Tail a log object by byte offset until the execution is terminal and the log is drained."""
        endpoint = "logs"
        started = monotonic()
        self.metrics.increment_sse_connections(endpoint)
        try:
            yield self._format_event(
                SSEEventType.INFO, {"message": f"Starting log stream for job {execution_id}"}, endpoint
            )
            if not log_available:
                yield self._format_event(
                    SSEEventType.INFO, {"message": f"Log file for job {execution_id} is not ready yet"}, endpoint
                )
                return

            decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
            offset = 0
            terminal_seen = False

            async def tick() -> tuple[bool, LogChunk | None]:
                # Status first: a terminal status means the executor has stopped appending
                record = await self.repository.get_status(execution_id)
                chunk = await self.repository.read_log(execution_id, log_type, offset)
                return record is not None and record.is_terminal, chunk

            async for terminal, chunk in poll(
                tick,
                interval=self.poll_interval,
                retry_on=TRANSIENT_ERRORS,
                what=f"{log_type} log of {execution_id}",
            ):
                if is_disconnected is not None and await is_disconnected():
                    self.logger.info("Log stream client disconnected", execution_id=execution_id)
                    break

                if chunk is not None and not chunk.is_empty:
                    offset = chunk.next_offset
                    text = decoder.decode(chunk.data)
                    if text:
                        yield self._format_event(SSEEventType.LOG, text, endpoint)
                    continue

                # Nothing new. Done once the execution was already terminal on an earlier tick,
                # which leaves room for the executor's final log flush.
                if terminal_seen:
                    tail = decoder.decode(b"", final=True)
                    if tail:
                        yield self._format_event(SSEEventType.LOG, tail, endpoint)
                    yield self._format_event(SSEEventType.STATUS, {"status": "complete"}, endpoint)
                    break
                terminal_seen = terminal
        except Exception as e:
            self.logger.error("Log stream failed", execution_id=execution_id, log_type=log_type, exc_info=True)
            yield self._format_event(SSEEventType.ERROR, {"error": str(e)}, endpoint)
        finally:
            self.metrics.decrement_sse_connections(endpoint)
            self.metrics.record_sse_connection_duration(monotonic() - started, endpoint)
            self.logger.info("Log stream closed", execution_id=execution_id, log_type=log_type)

    def _format_event(self, event_type: SSEEventType, data: dict[str, Any] | str, endpoint: str) -> dict[str, Any]:
        self.metrics.record_sse_message_sent(endpoint, event_type)
        payload = data if isinstance(data, str) else json.dumps(data)
        return {"event": str(event_type), "data": payload}
