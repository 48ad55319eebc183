import structlog
from pydantic import ValidationError as PydanticValidationError

from greenrun.domain.enums.execution import LogType
from greenrun.domain.exceptions import InfrastructureError
from greenrun.domain.execution import paths
from greenrun.domain.execution.exceptions import ExecutionNotFoundError
from greenrun.domain.execution.models import ExecutionStatusRecord, LogChunk, ShutdownMarker
from greenrun.infrastructure.storage import ObjectNotFoundError, ObjectStorage, key_from_uri

JSON_CONTENT_TYPE = "application/json"


class StatusStore:
    """Per-execution documents in object storage: status record, shutdown marker and logs.

    Writes are whole-object overwrites with no locking; each execution has a single
    writer (the executor) and any number of readers.
    """

    def __init__(self, storage: ObjectStorage, logger: structlog.stdlib.BoundLogger) -> None:
        self._storage = storage
        self._logger = logger

    @property
    def storage(self) -> ObjectStorage:
        return self._storage

    def put(self, record: ExecutionStatusRecord) -> None:
        self._storage.put(paths.status_key(record.execution_id), record.to_json_bytes(), JSON_CONTENT_TYPE)

    def get(self, execution_id: str) -> ExecutionStatusRecord:
        try:
            raw = self._storage.get(paths.status_key(execution_id))
        except ObjectNotFoundError as e:
            raise ExecutionNotFoundError(execution_id) from e
        try:
            return ExecutionStatusRecord.model_validate_json(raw)
        except PydanticValidationError as e:
            raise InfrastructureError(f"Corrupt status record for execution {execution_id}: {e}") from e

    def shutdown_marker_exists(self, execution_id: str) -> bool:
        return self._storage.exists(paths.shutdown_marker_key(execution_id))

    def put_shutdown_marker_if_absent(self, marker: ShutdownMarker) -> bool:
        """Write the marker unless one is already there; returns whether this call wrote it."""
        if self.shutdown_marker_exists(marker.execution_id):
            self._logger.info("Shutdown marker already present", execution_id=marker.execution_id)
            return False
        self._storage.put(paths.shutdown_marker_key(marker.execution_id), marker.to_json_bytes(), JSON_CONTENT_TYPE)
        return True

    def get_shutdown_marker(self, execution_id: str) -> ShutdownMarker | None:
        try:
            raw = self._storage.get(paths.shutdown_marker_key(execution_id))
        except ObjectNotFoundError:
            return None
        try:
            return ShutdownMarker.model_validate_json(raw)
        except PydanticValidationError:
            self._logger.warning("Unreadable shutdown marker", execution_id=execution_id, exc_info=True)
            return None

    def log_exists(self, execution_id: str, log_type: LogType) -> bool:
        return self._storage.exists(paths.log_key(execution_id, log_type))

    def read_log(self, execution_id: str, log_type: LogType, offset: int = 0) -> LogChunk:
        """Raises ObjectNotFoundError when the log object has not been written yet."""
        data = self._storage.get_range(paths.log_key(execution_id, log_type), max(0, offset))
        return LogChunk(data=data, offset=offset, next_offset=offset + len(data))

    def read_uri(self, uri: str) -> bytes:
        return self._storage.get(key_from_uri(self._storage, uri))
