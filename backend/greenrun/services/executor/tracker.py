import traceback
from collections.abc import Callable
from typing import Any

import structlog
from nbformat import NotebookNode

from greenrun.core.metrics import ExecutionMetrics
from greenrun.core.utils import iso_now
from greenrun.db.repositories.status_store import StatusStore
from greenrun.domain.enums.execution import ExecutionStatus
from greenrun.domain.exceptions import DomainError
from greenrun.domain.execution.models import CurrentCell, ExecutionStatusRecord
from greenrun.domain.execution.progress import compute_progress, truncate_source
from greenrun.services.executor.error_capture import (
    build_error_detail,
    collect_system_info,
    describe_error,
    extract_cell_error_output,
)
from greenrun.services.executor.notebook import count_completed, executable_indices, first_unexecuted_cell


class StatusTracker:
    """Cell observer that publishes the execution's status record.

    Owns the in-memory copy of the record and is the only writer for its execution.
    Statuses only move forward and a terminal record is never rewritten.
    """

    def __init__(
        self,
        store: StatusStore,
        execution_id: str,
        notebook_path: str,
        output_path: str,
        logger: structlog.stdlib.BoundLogger,
        metrics: ExecutionMetrics | None = None,
        clock: Callable[[], str] = iso_now,
        system_info: Callable[[], dict[str, Any]] = collect_system_info,
    ) -> None:
        self._store = store
        self._logger = logger
        self._metrics = metrics
        self._clock = clock
        self._system_info = system_info
        self._nb: NotebookNode | None = None
        self._indices: list[int] = []
        self._record = ExecutionStatusRecord(
            execution_id=execution_id,
            status=ExecutionStatus.PENDING,
            notebook_path=notebook_path,
            output_path=output_path,
            start_time=clock(),
        )

    @property
    def record(self) -> ExecutionStatusRecord:
        return self._record

    def start(self, nb: NotebookNode) -> bool:
        self._nb = nb
        self._indices = executable_indices(nb)
        self._logger.info("Notebook parsed", cells_total=len(self._indices))
        return self._push(
            status=ExecutionStatus.RUNNING,
            cells_total=len(self._indices),
            cells_completed=0,
            progress=0,
        )

    def before_cell(self, index: int, cell: NotebookNode) -> None:
        self._logger.info("Executing cell", cell_index=index, cells_completed=self._record.cells_completed)
        self._push(current_cell=self._current_cell(index, cell))

    def after_cell(self, index: int, cell: NotebookNode) -> None:
        self._push(current_cell=self._current_cell(index, cell), **self._counters())
        self._logger.info("Cell finished", cell_index=index, progress=self._record.progress)

    def on_cell_error(self, index: int, cell: NotebookNode, error: BaseException) -> None:
        error_type, error_message = describe_error(error)
        if self._metrics:
            self._metrics.record_cell_failure(error_type)
        self._push(
            status=ExecutionStatus.FAILED,
            end_time=self._clock(),
            current_cell=self._current_cell(index, cell),
            error_message=f"{error_type}: {error_message}",
            error_detail=build_error_detail(error, index, str(cell.get("source", ""))),
            stack_trace="".join(traceback.format_exception(error)),
            cell_error_output=extract_cell_error_output(cell),
            system_info=self._system_info(),
            **self._counters(),
        )

    def fail(self, error: BaseException) -> int | None:
        """Record a failure raised outside any cell; returns the cell it was attributed to, if any."""
        index = first_unexecuted_cell(self._nb, self._indices) if self._nb is not None else None
        cell = self._nb.cells[index] if self._nb is not None and index is not None else None
        self._push(
            status=ExecutionStatus.FAILED,
            end_time=self._clock(),
            current_cell=self._current_cell(index, cell) if index is not None and cell is not None else None,
            error_message=str(error),
            error_detail=build_error_detail(
                error, index, str(cell.get("source", "")) if cell is not None else None
            ),
            stack_trace="".join(traceback.format_exception(error)),
            cell_error_output=extract_cell_error_output(cell) if cell is not None else None,
            system_info=self._system_info(),
            **self._counters(),
        )
        return index

    def complete(self) -> bool:
        return self._push(status=ExecutionStatus.COMPLETED, end_time=self._clock(), **self._counters())

    def _counters(self) -> dict[str, int]:
        if self._nb is None:
            return {}
        total = len(self._indices)
        completed = min(count_completed(self._nb, self._indices), total)
        return {"cells_total": total, "cells_completed": completed, "progress": compute_progress(completed, total)}

    @staticmethod
    def _current_cell(index: int, cell: NotebookNode) -> CurrentCell:
        return CurrentCell(index=index, source=truncate_source(str(cell.get("source", ""))))

    def _push(self, **changes: Any) -> bool:
        """Write the record with `changes` applied; returns whether it was written."""
        current = self._record
        if current.is_terminal:
            self._logger.warning(
                "Ignoring status update after terminal state",
                status=current.status,
                attempted=changes.get("status", current.status),
            )
            return False

        new_status = changes.get("status", current.status)
        if not current.status.can_transition_to(new_status):
            self._logger.warning("Ignoring backwards status transition", status=current.status, attempted=new_status)
            return False

        self._record = current.model_copy(update=changes)
        try:
            self._store.put(self._record)
        except DomainError:
            # The in-memory record stays authoritative; the next push rewrites the whole object
            self._logger.error("Status push failed", status=self._record.status, exc_info=True)
            return False
        if self._metrics:
            self._metrics.record_status_push(self._record.status)
        return True
