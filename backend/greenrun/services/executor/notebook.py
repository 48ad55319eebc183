"""Helpers for reading and preparing notebooks before execution."""

from nbformat import NotebookNode


def is_executable(cell: NotebookNode) -> bool:
    """Code cells with non-blank source; everything else is skipped and never reported."""
    return cell.get("cell_type") == "code" and bool(str(cell.get("source", "")).strip())


def executable_indices(nb: NotebookNode) -> list[int]:
    return [index for index, cell in enumerate(nb.cells) if is_executable(cell)]


def count_completed(nb: NotebookNode, indices: list[int]) -> int:
    """Executable cells carrying an execution count, i.e. cells the kernel has run."""
    return sum(1 for index in indices if nb.cells[index].get("execution_count") is not None)


def reset_execution_state(nb: NotebookNode) -> None:
    """Clear execution counts and outputs left over from a previous run of the notebook."""
    for cell in nb.cells:
        if cell.get("cell_type") == "code":
            cell["execution_count"] = None
            cell["outputs"] = []


def first_unexecuted_cell(nb: NotebookNode, indices: list[int]) -> int | None:
    """Best-effort attribution of a failure to the cell that was in flight."""
    for index in indices:
        if nb.cells[index].get("execution_count") is None:
            return index
    return None
