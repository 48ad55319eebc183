from collections.abc import Callable
from typing import Any

import structlog
from nbclient import NotebookClient
from nbclient.exceptions import CellExecutionError, CellTimeoutError, DeadKernelError
from nbformat import NotebookNode

from greenrun.services.executor.cell_observer import CellObserver
from greenrun.services.executor.notebook import executable_indices

ClientFactory = Callable[[NotebookNode], Any]

# Errors raised while a specific cell runs; anything else is an environment failure
CELL_ERRORS: tuple[type[BaseException], ...] = (CellExecutionError, CellTimeoutError, DeadKernelError)


class CellExecutionFailure(Exception):
    """A cell raised; carries the cell index and the original error."""

    def __init__(self, index: int, cell: NotebookNode, error: BaseException) -> None:
        self.index = index
        self.cell = cell
        self.error = error
        super().__init__(f"Cell execution failed at index {index}: {error}")


def default_client_factory(
    kernel_name: str, cell_timeout: int, working_dir: str | None = None
) -> ClientFactory:
    def factory(nb: NotebookNode) -> NotebookClient:
        resources = {"metadata": {"path": working_dir}} if working_dir else {}
        return NotebookClient(nb, timeout=cell_timeout, kernel_name=kernel_name, resources=resources)

    return factory


class NotebookRunner:
    """Runs a notebook's executable cells in order inside one kernel session.

    Each cell runs to completion before the next starts. The first failing cell
    stops the run: observers get `on_cell_error`, then `CellExecutionFailure` is raised.
    """

    def __init__(self, client_factory: ClientFactory, logger: structlog.stdlib.BoundLogger) -> None:
        self._client_factory = client_factory
        self._logger = logger

    def run(self, nb: NotebookNode, observer: CellObserver) -> NotebookNode:
        client = self._client_factory(nb)
        indices = executable_indices(nb)
        self._logger.info("Starting kernel", cells=len(indices))

        with client.setup_kernel():
            for index in indices:
                cell = nb.cells[index]
                observer.before_cell(index, cell)
                try:
                    client.execute_cell(cell, index)
                except CELL_ERRORS as e:
                    self._logger.warning("Cell raised", cell_index=index, error_type=type(e).__name__)
                    observer.on_cell_error(index, cell, e)
                    raise CellExecutionFailure(index, cell, e) from e
                observer.after_cell(index, cell)

        return nb
