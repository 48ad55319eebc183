from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from greenrun.domain.enums.execution import ExecutionStatus


class WireModel(BaseModel):
    """Base for records persisted to object storage; camelCase on the wire, snake_case in code."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_wire(self) -> dict[str, Any]:
        # Optional keys are omitted rather than written as null
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_json_bytes(self) -> bytes:
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=4).encode("utf-8")


class CurrentCell(WireModel):
    index: int
    source: str


class ErrorDetail(WireModel):
    """Where and how an execution failed."""

    cell_index: int | None = None
    cell_source: str | None = None
    error_type: str
    error_message: str


class CellErrorOutput(WireModel):
    """One error-bearing output of the failed cell: a raised error or a stderr stream."""

    ename: str | None = None
    evalue: str | None = None
    traceback: list[str] | None = None
    stderr: str | None = None


class ExecutionStatusRecord(WireModel):
    """The durable per-execution status document written by the executor and read by pollers."""

    execution_id: str
    status: ExecutionStatus = ExecutionStatus.PENDING
    notebook_path: str | None = None
    output_path: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    cells_total: int = Field(default=0, ge=0)
    cells_completed: int = Field(default=0, ge=0)
    progress: int = Field(default=0, ge=0, le=100)
    current_cell: CurrentCell | None = None
    error_message: str | None = None
    error_detail: ErrorDetail | None = None
    stack_trace: str | None = None
    cell_error_output: list[CellErrorOutput] | None = None
    system_info: dict[str, Any] | None = None

    @classmethod
    def pending(cls, execution_id: str) -> ExecutionStatusRecord:
        return cls(execution_id=execution_id, status=ExecutionStatus.PENDING)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal


class ShutdownMarker(WireModel):
    reason: str
    timestamp: str
    execution_id: str


class ExecutionStatusView(ExecutionStatusRecord):
    """Status record as served to clients, with the shutdown marker folded in."""

    is_instance_shutdown: bool = False
    shutdown_reason: str | None = None
    shutdown_time: str | None = None

    @classmethod
    def from_record(cls, record: ExecutionStatusRecord, marker: ShutdownMarker | None = None) -> ExecutionStatusView:
        data = record.model_dump()
        if marker is not None:
            data.update(is_instance_shutdown=True, shutdown_reason=marker.reason, shutdown_time=marker.timestamp)
        return cls(**data)


class SubmissionResult(WireModel):
    execution_id: str
    instance_handle: str
    source_path: str
    output_path: str
    status_path: str
    auto_execute: bool


@dataclass(frozen=True)
class LogChunk:
    """A byte range read from a log object; `next_offset` is where the following read starts."""

    data: bytes
    offset: int
    next_offset: int

    @property
    def is_empty(self) -> bool:
        return not self.data
