from collections.abc import Iterator
from contextlib import contextmanager

import nbformat
from nbclient.exceptions import CellExecutionError
from nbformat import NotebookNode

from greenrun.services.executor.runner import ClientFactory


class FakeNotebookClient:
    """Stands in for nbclient.NotebookClient: no kernel, cells "run" by setting counts and outputs.

    Cells listed in `fail_at` raise CellExecutionError after recording an error output,
    the way a real kernel reply does.
    """

    def __init__(self, nb: NotebookNode, fail_at: set[int] | None = None, ename: str = "ZeroDivisionError") -> None:
        self.nb = nb
        self.fail_at = fail_at or set()
        self.ename = ename
        self.executed: list[int] = []
        self.kernel_running = False
        self.kernel_sessions = 0
        self._count = 0

    @contextmanager
    def setup_kernel(self) -> Iterator[None]:
        self.kernel_running = True
        self.kernel_sessions += 1
        try:
            yield
        finally:
            self.kernel_running = False

    def execute_cell(self, cell: NotebookNode, cell_index: int) -> NotebookNode:
        assert self.kernel_running, "cell executed outside a kernel session"
        self._count += 1
        self.executed.append(cell_index)
        cell.execution_count = self._count

        if cell_index in self.fail_at:
            traceback = [f"{self.ename}                Traceback (most recent call last)", "division by zero"]
            cell.outputs = [
                nbformat.v4.new_output("stream", name="stderr", text="warning: about to fail\n"),
                nbformat.v4.new_output("error", ename=self.ename, evalue="division by zero", traceback=traceback),
            ]
            raise CellExecutionError("\n".join(traceback), self.ename, "division by zero")

        cell.outputs = [nbformat.v4.new_output("stream", name="stdout", text=f"ran cell {cell_index}\n")]
        return cell


def fake_client_factory(
    clients: list[FakeNotebookClient], fail_at: set[int] | None = None
) -> ClientFactory:
    """Factory building FakeNotebookClients; each one created is appended to `clients`."""

    def factory(nb: NotebookNode) -> FakeNotebookClient:
        client = FakeNotebookClient(nb, fail_at=fail_at)
        clients.append(client)
        return client

    return factory
