import os
import socket
import threading
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path

import structlog

from greenrun.core.metrics import ExecutionMetrics
from greenrun.core.utils import iso_now
from greenrun.db.repositories.status_store import StatusStore
from greenrun.domain.exceptions import DomainError
from greenrun.domain.execution.models import ShutdownMarker
from greenrun.domain.execution.paths import LOCAL_SHUTDOWN_REASON_FILE
from greenrun.infrastructure.compute import ComputeHost


@dataclass(frozen=True)
class ShutdownOutcome:
    marker_written: bool
    host_id: str | None
    stop_requested: bool
    skipped: bool = False


class ShutdownCoordinator:
    """Stops the compute host after a fatal error, once the reason for it has been written down.

    Sequence: shutdown marker in object storage, local reason file, a log flush
    when the caller supplies one, grace period, then a stop request for this host.
    Marker, file or flush failures never prevent the stop, so a run can end with
    partial diagnostics but never with an idle host.
    A second call for the same execution does nothing.
    """

    def __init__(
        self,
        store: StatusStore,
        compute: ComputeHost,
        logger: structlog.stdlib.BoundLogger,
        grace_seconds: float = 5.0,
        host_env: str = "NOTEBOOK_INSTANCE_NAME",
        local_marker_path: Path = Path(LOCAL_SHUTDOWN_REASON_FILE),
        metrics: ExecutionMetrics | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], str] = iso_now,
        environ: Mapping[str, str] = os.environ,
        metadata_lookup: Callable[[], str] = socket.gethostname,
    ) -> None:
        self._store = store
        self._compute = compute
        self._logger = logger
        self._grace_seconds = grace_seconds
        self._host_env = host_env
        self._local_marker_path = local_marker_path
        self._metrics = metrics
        self._sleep = sleep
        self._clock = clock
        self._environ = environ
        self._metadata_lookup = metadata_lookup
        self._lock = threading.Lock()
        self._handled: set[str] = set()

    def shutdown(
        self, execution_id: str, reason: str, flush_logs: Callable[[], object] | None = None
    ) -> ShutdownOutcome:
        with self._lock:
            if execution_id in self._handled:
                self._logger.info("Shutdown already initiated", execution_id=execution_id)
                return ShutdownOutcome(marker_written=False, host_id=None, stop_requested=False, skipped=True)
            self._handled.add(execution_id)

        timestamp = self._clock()
        self._logger.warning("Initiating host shutdown", execution_id=execution_id, reason=reason)

        marker_written = False
        try:
            marker = ShutdownMarker(reason=reason, timestamp=timestamp, execution_id=execution_id)
            marker_written = self._store.put_shutdown_marker_if_absent(marker)
        except DomainError:
            self._logger.error("Shutdown diagnostics failed: marker not written", execution_id=execution_id, exc_info=True)

        try:
            self._local_marker_path.write_text(f"{reason} at {timestamp}", encoding="utf-8")
        except OSError:
            self._logger.error(
                "Shutdown diagnostics failed: local reason file not written",
                path=str(self._local_marker_path),
                exc_info=True,
            )

        if flush_logs is not None:
            try:
                flush_logs()
            except (OSError, DomainError):
                self._logger.warning("Log flush before shutdown failed", execution_id=execution_id, exc_info=True)

        if self._grace_seconds > 0:
            self._sleep(self._grace_seconds)

        host_id = self._resolve_host_id()
        if not host_id:
            self._logger.critical("Host stop failed: cannot determine host id", execution_id=execution_id)
            self._record("unresolved")
            return ShutdownOutcome(marker_written=marker_written, host_id=None, stop_requested=False)

        try:
            self._compute.stop(host_id)
        except Exception:
            # Nothing else can stop this host
            self._logger.critical("Host stop failed", execution_id=execution_id, host_id=host_id, exc_info=True)
            self._record("stop_failed")
            return ShutdownOutcome(marker_written=marker_written, host_id=host_id, stop_requested=False)

        self._logger.info("Host stop requested", execution_id=execution_id, host_id=host_id)
        self._record("stopped")
        return ShutdownOutcome(marker_written=marker_written, host_id=host_id, stop_requested=True)

    def _resolve_host_id(self) -> str | None:
        host_id = self._environ.get(self._host_env, "").strip()
        if host_id:
            return host_id
        try:
            return self._metadata_lookup().strip() or None
        except OSError:
            self._logger.warning("Host metadata lookup failed", exc_info=True)
            return None

    def _record(self, outcome: str) -> None:
        if self._metrics:
            self._metrics.record_host_shutdown(outcome)
