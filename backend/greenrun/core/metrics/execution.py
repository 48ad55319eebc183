from greenrun.core.metrics.base import BaseMetrics


class ExecutionMetrics(BaseMetrics):
    """Metrics for notebook submissions, status pushes and host lifecycle."""

    def _create_instruments(self) -> None:
        self.submissions = self._meter.create_counter(
            name="notebook.submissions.total",
            description="Total number of notebook submissions by outcome",
            unit="1",
        )

        self.status_pushes = self._meter.create_counter(
            name="execution.status.pushes.total",
            description="Total number of status records written by the executor",
            unit="1",
        )

        self.cell_failures = self._meter.create_counter(
            name="execution.cell.failures.total",
            description="Total number of notebook cells that raised during execution",
            unit="1",
        )

        self.host_ready_duration = self._meter.create_histogram(
            name="compute.host.ready.duration",
            description="Time from host creation until it reported in-service, in seconds",
            unit="s",
        )

        self.host_shutdowns = self._meter.create_counter(
            name="compute.host.shutdowns.total",
            description="Self-shutdowns initiated by the executor by outcome",
            unit="1",
        )

    def record_submission(self, outcome: str) -> None:
        self.submissions.add(1, attributes={"outcome": outcome})

    def record_status_push(self, status: str) -> None:
        self.status_pushes.add(1, attributes={"status": status})

    def record_cell_failure(self, error_type: str) -> None:
        self.cell_failures.add(1, attributes={"error_type": error_type})

    def record_host_ready(self, duration_seconds: float) -> None:
        self.host_ready_duration.record(duration_seconds)

    def record_host_shutdown(self, outcome: str) -> None:
        self.host_shutdowns.add(1, attributes={"outcome": outcome})
