import threading
from pathlib import Path

import structlog

from greenrun.domain.enums.execution import LogType
from greenrun.domain.exceptions import DomainError
from greenrun.domain.execution import paths
from greenrun.infrastructure.storage import ObjectStorage


class LogFlusher:
    """Uploads the executor's local log files to object storage every `interval` seconds.

    Runs on a daemon thread between `start()` (before the first cell) and `stop()`
    (after the final status write), which performs one last flush. Upload failures
    are logged and retried on the next tick.
    """

    def __init__(
        self,
        storage: ObjectStorage,
        execution_id: str,
        log_files: dict[LogType, Path],
        interval: float,
        logger: structlog.stdlib.BoundLogger,
    ) -> None:
        self._storage = storage
        self._execution_id = execution_id
        self._log_files = log_files
        self._interval = interval
        self._logger = logger
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._sizes: dict[LogType, int] = {}
        self._lock = threading.Lock()
        self._stopped = False

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stopped = False
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name=f"log-flusher-{self._execution_id}", daemon=True)
        self._thread.start()
        self._logger.debug("Log flusher started", interval=self._interval)

    def stop(self, timeout: float | None = None) -> None:
        if self._stopped:
            return
        self._stopped = True
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout if timeout is not None else max(self._interval * 2, 5.0))
            self._thread = None
        self.flush(force=True)
        self._logger.debug("Log flusher stopped")

    def flush(self, force: bool = False) -> int:
        """Upload every log file that changed since the last upload; returns how many were uploaded."""
        uploaded = 0
        with self._lock:
            for log_type, path in self._log_files.items():
                try:
                    if not path.exists():
                        continue
                    size = path.stat().st_size
                    if not force and self._sizes.get(log_type) == size:
                        continue
                    self._storage.put(
                        paths.log_key(self._execution_id, log_type), path.read_bytes(), "text/plain; charset=utf-8"
                    )
                    self._sizes[log_type] = size
                    uploaded += 1
                except (OSError, DomainError):
                    self._logger.warning("Log upload failed", log_type=log_type, path=str(path), exc_info=True)
        return uploaded

    def _run(self) -> None:
        while not self._stop_event.wait(self._interval):
            self.flush()
