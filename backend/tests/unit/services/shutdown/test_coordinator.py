import pytest
import structlog

from greenrun.db.repositories import StatusStore
from greenrun.domain.execution import paths
from greenrun.domain.execution.models import ShutdownMarker
from greenrun.services.shutdown import ShutdownCoordinator
from tests.helpers.fakes import FakeComputeHost, InMemoryObjectStorage

pytestmark = pytest.mark.unit

_logger = structlog.get_logger("test.services.shutdown")

TIMESTAMP = "2026-01-01T00:00:00+00:00"


def _coordinator(store, compute, tmp_path, environ=None, lookup=lambda: "", sleeps=None) -> ShutdownCoordinator:
    return ShutdownCoordinator(
        store,
        compute,
        _logger,
        grace_seconds=3.0,
        local_marker_path=tmp_path / "shutdown_reason.txt",
        sleep=(sleeps.append if sleeps is not None else lambda _: None),
        clock=lambda: TIMESTAMP,
        environ=environ if environ is not None else {"NOTEBOOK_INSTANCE_NAME": "notebook-e1"},
        metadata_lookup=lookup,
    )


def test_marker_then_grace_then_stop(
    status_store: StatusStore, storage: InMemoryObjectStorage, compute: FakeComputeHost, tmp_path
) -> None:
    sleeps: list[float] = []
    coordinator = _coordinator(status_store, compute, tmp_path, sleeps=sleeps)

    outcome = coordinator.shutdown("e1", "Cell execution failed at index 2")

    assert outcome.marker_written and outcome.stop_requested
    assert outcome.host_id == "notebook-e1"
    assert sleeps == [3.0]
    assert compute.stopped == ["notebook-e1"]
    marker = ShutdownMarker.model_validate_json(storage.objects[paths.shutdown_marker_key("e1")])
    assert marker.reason == "Cell execution failed at index 2"
    assert marker.timestamp == TIMESTAMP
    assert (tmp_path / "shutdown_reason.txt").read_text() == f"Cell execution failed at index 2 at {TIMESTAMP}"


def test_second_call_is_skipped(status_store: StatusStore, compute: FakeComputeHost, tmp_path) -> None:
    coordinator = _coordinator(status_store, compute, tmp_path)

    coordinator.shutdown("e1", "first")
    outcome = coordinator.shutdown("e1", "second")

    assert outcome.skipped
    assert compute.stopped == ["notebook-e1"]
    assert status_store.get_shutdown_marker("e1").reason == "first"


def test_existing_marker_is_kept(status_store: StatusStore, compute: FakeComputeHost, tmp_path) -> None:
    status_store.put_shutdown_marker_if_absent(ShutdownMarker(reason="earlier", timestamp="t0", execution_id="e1"))
    coordinator = _coordinator(status_store, compute, tmp_path)

    outcome = coordinator.shutdown("e1", "later")

    assert not outcome.marker_written
    assert outcome.stop_requested
    assert status_store.get_shutdown_marker("e1").reason == "earlier"


def test_marker_failure_does_not_prevent_stop(
    status_store: StatusStore, storage: InMemoryObjectStorage, compute: FakeComputeHost, tmp_path
) -> None:
    storage.fail_keys.add(paths.shutdown_marker_key("e1"))
    coordinator = _coordinator(status_store, compute, tmp_path)

    outcome = coordinator.shutdown("e1", "boom")

    assert not outcome.marker_written
    assert compute.stopped == ["notebook-e1"]


def test_stop_failure_is_reported_not_raised(status_store: StatusStore, compute: FakeComputeHost, tmp_path) -> None:
    compute.fail_stop = True
    coordinator = _coordinator(status_store, compute, tmp_path)

    outcome = coordinator.shutdown("e1", "boom")

    assert outcome.marker_written
    assert not outcome.stop_requested
    assert outcome.host_id == "notebook-e1"


def test_host_id_falls_back_to_metadata(status_store: StatusStore, compute: FakeComputeHost, tmp_path) -> None:
    coordinator = _coordinator(status_store, compute, tmp_path, environ={}, lookup=lambda: "pod-host-7\n")

    outcome = coordinator.shutdown("e1", "boom")

    assert outcome.host_id == "pod-host-7"
    assert compute.stopped == ["pod-host-7"]


def test_unresolvable_host_skips_stop(status_store: StatusStore, compute: FakeComputeHost, tmp_path) -> None:
    def lookup() -> str:
        raise OSError("no metadata")

    coordinator = _coordinator(status_store, compute, tmp_path, environ={}, lookup=lookup)

    outcome = coordinator.shutdown("e1", "boom")

    assert outcome.host_id is None
    assert not outcome.stop_requested
    assert compute.stopped == []
    assert outcome.marker_written


def test_logs_are_flushed_after_marker_and_before_grace(
    status_store: StatusStore, storage: InMemoryObjectStorage, compute: FakeComputeHost, tmp_path
) -> None:
    events: list[str] = []

    def flush_logs() -> None:
        events.append("flush")
        assert paths.shutdown_marker_key("e1") in storage.objects

    coordinator = ShutdownCoordinator(
        status_store,
        compute,
        _logger,
        grace_seconds=3.0,
        local_marker_path=tmp_path / "shutdown_reason.txt",
        sleep=lambda _: events.append("sleep"),
        clock=lambda: TIMESTAMP,
        environ={"NOTEBOOK_INSTANCE_NAME": "notebook-e1"},
    )

    coordinator.shutdown("e1", "boom", flush_logs=flush_logs)

    assert events == ["flush", "sleep"]
    assert compute.stopped == ["notebook-e1"]


def test_flush_failure_does_not_prevent_stop(status_store: StatusStore, compute: FakeComputeHost, tmp_path) -> None:
    def flush_logs() -> None:
        raise OSError("disk gone")

    coordinator = _coordinator(status_store, compute, tmp_path)

    outcome = coordinator.shutdown("e1", "boom", flush_logs=flush_logs)

    assert outcome.stop_requested
    assert compute.stopped == ["notebook-e1"]
