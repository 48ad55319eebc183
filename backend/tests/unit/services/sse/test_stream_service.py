import json
from unittest.mock import AsyncMock, MagicMock

import pytest
import structlog

from greenrun.core.metrics import ConnectionMetrics
from greenrun.db.repositories import ExecutionRepository, StatusStore
from greenrun.domain.enums.execution import ExecutionStatus, LogType
from greenrun.domain.execution import paths
from greenrun.domain.execution.exceptions import LogNotFoundError
from greenrun.domain.execution.models import ExecutionStatusRecord, ExecutionStatusView
from greenrun.services.sse import ExecutionStreamService
from greenrun.services.status_service import ExecutionStatusService
from greenrun.settings import Settings
from tests.helpers.fakes import InMemoryObjectStorage

pytestmark = pytest.mark.unit

_logger = structlog.get_logger("test.services.sse")


@pytest.fixture
def status_service(execution_repository: ExecutionRepository, test_settings: Settings) -> ExecutionStatusService:
    return ExecutionStatusService(execution_repository, test_settings, _logger)


@pytest.fixture
def stream_service(
    execution_repository: ExecutionRepository,
    status_service: ExecutionStatusService,
    test_settings: Settings,
    connection_metrics: ConnectionMetrics,
) -> ExecutionStreamService:
    return ExecutionStreamService(execution_repository, status_service, test_settings, connection_metrics, _logger)


def _view(status: ExecutionStatus, cells_completed: int = 0) -> ExecutionStatusView:
    return ExecutionStatusView(execution_id="e1", status=status, cells_total=4, cells_completed=cells_completed)


async def _collect(stream) -> list[dict]:
    return [event async for event in stream]


@pytest.mark.asyncio
async def test_status_stream_ends_after_terminal(
    stream_service: ExecutionStreamService, status_store: StatusStore
) -> None:
    status_store.put(ExecutionStatusRecord(execution_id="e1", status=ExecutionStatus.COMPLETED, progress=100))

    events = await _collect(stream_service.create_status_stream("e1"))

    assert len(events) == 1
    assert events[0]["event"] == "status"
    data = json.loads(events[0]["data"])
    assert data["status"] == "COMPLETED"
    assert data["executionId"] == "e1"


@pytest.mark.asyncio
async def test_status_stream_skips_duplicates_and_regressions(
    execution_repository: ExecutionRepository,
    test_settings: Settings,
    connection_metrics: ConnectionMetrics,
) -> None:
    status_service = MagicMock(spec=ExecutionStatusService)
    status_service.get_status = AsyncMock(
        side_effect=[
            _view(ExecutionStatus.RUNNING, 2),
            _view(ExecutionStatus.RUNNING, 1),
            _view(ExecutionStatus.PENDING),
            _view(ExecutionStatus.RUNNING, 2),
            _view(ExecutionStatus.COMPLETED, 4),
        ]
    )
    service = ExecutionStreamService(execution_repository, status_service, test_settings, connection_metrics, _logger)

    events = await _collect(service.create_status_stream("e1"))

    sent = [json.loads(event["data"]) for event in events]
    assert [(s["status"], s["cellsCompleted"]) for s in sent] == [("RUNNING", 2), ("COMPLETED", 4)]


@pytest.mark.asyncio
async def test_status_stream_stops_on_disconnect(
    stream_service: ExecutionStreamService, status_store: StatusStore
) -> None:
    status_store.put(ExecutionStatusRecord(execution_id="e1", status=ExecutionStatus.RUNNING))

    events = await _collect(stream_service.create_status_stream("e1", is_disconnected=AsyncMock(return_value=True)))

    assert events == []


@pytest.mark.asyncio
async def test_status_stream_reports_unexpected_errors(
    execution_repository: ExecutionRepository,
    test_settings: Settings,
    connection_metrics: ConnectionMetrics,
) -> None:
    status_service = MagicMock(spec=ExecutionStatusService)
    status_service.get_status = AsyncMock(side_effect=RuntimeError("boom"))
    service = ExecutionStreamService(execution_repository, status_service, test_settings, connection_metrics, _logger)

    events = await _collect(service.create_status_stream("e1"))

    assert events == [{"event": "error", "data": json.dumps({"error": "boom"})}]


@pytest.mark.asyncio
async def test_log_stream_tails_until_terminal(
    stream_service: ExecutionStreamService, status_store: StatusStore, storage: InMemoryObjectStorage
) -> None:
    storage.put(paths.log_key("e1", LogType.EXECUTION), "first line\nsecond café line\n".encode("utf-8"))
    status_store.put(ExecutionStatusRecord(execution_id="e1", status=ExecutionStatus.COMPLETED))

    events = await _collect(stream_service.create_log_stream("e1", LogType.EXECUTION))

    assert [event["event"] for event in events] == ["info", "log", "status"]
    assert json.loads(events[0]["data"]) == {"message": "Starting log stream for job e1"}
    assert events[1]["data"] == "first line\nsecond café line\n"
    assert json.loads(events[2]["data"]) == {"status": "complete"}


@pytest.mark.asyncio
async def test_log_stream_not_ready(stream_service: ExecutionStreamService) -> None:
    events = await _collect(stream_service.create_log_stream("e1", LogType.CELL_OUTPUT, log_available=False))

    assert [event["event"] for event in events] == ["info", "info"]
    assert "not ready" in json.loads(events[1]["data"])["message"]


@pytest.mark.asyncio
async def test_log_availability(stream_service: ExecutionStreamService, status_store: StatusStore, storage) -> None:
    with pytest.raises(LogNotFoundError):
        await stream_service.check_log_available("e1", LogType.EXECUTION)

    status_store.put(ExecutionStatusRecord(execution_id="e1", status=ExecutionStatus.RUNNING))
    assert await stream_service.check_log_available("e1", LogType.EXECUTION) is False

    storage.put(paths.log_key("e1", LogType.EXECUTION), b"started\n")
    assert await stream_service.check_log_available("e1", LogType.EXECUTION) is True
