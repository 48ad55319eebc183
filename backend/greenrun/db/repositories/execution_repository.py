import asyncio

import structlog

from greenrun.db.repositories.status_store import StatusStore
from greenrun.domain.enums.execution import LogType
from greenrun.domain.execution.exceptions import ExecutionNotFoundError
from greenrun.domain.execution.models import ExecutionStatusRecord, LogChunk, ShutdownMarker
from greenrun.infrastructure.storage import ObjectNotFoundError


class ExecutionRepository:
    """Async facade over `StatusStore` for request handlers and stream pollers."""

    def __init__(self, store: StatusStore, logger: structlog.stdlib.BoundLogger) -> None:
        self._store = store
        self.logger = logger

    async def get_status(self, execution_id: str) -> ExecutionStatusRecord | None:
        try:
            return await asyncio.to_thread(self._store.get, execution_id)
        except ExecutionNotFoundError:
            self.logger.debug("No status record yet", execution_id=execution_id)
            return None

    async def put_status(self, record: ExecutionStatusRecord) -> None:
        await asyncio.to_thread(self._store.put, record)

    async def get_shutdown_marker(self, execution_id: str) -> ShutdownMarker | None:
        return await asyncio.to_thread(self._store.get_shutdown_marker, execution_id)

    async def read_log(self, execution_id: str, log_type: LogType, offset: int = 0) -> LogChunk | None:
        """Returns None while the log object does not exist."""
        try:
            return await asyncio.to_thread(self._store.read_log, execution_id, log_type, offset)
        except ObjectNotFoundError:
            return None

    async def read_uri(self, uri: str) -> bytes | None:
        try:
            return await asyncio.to_thread(self._store.read_uri, uri)
        except ObjectNotFoundError:
            return None
