from collections.abc import Sequence
from typing import Protocol

from nbformat import NotebookNode


class CellObserver(Protocol):
    """Hooks invoked by `NotebookRunner` around every executable cell."""

    def before_cell(self, index: int, cell: NotebookNode) -> None: ...

    def after_cell(self, index: int, cell: NotebookNode) -> None: ...

    def on_cell_error(self, index: int, cell: NotebookNode, error: BaseException) -> None: ...


class CompositeObserver:
    """Fans each hook out to several observers, in order."""

    def __init__(self, observers: Sequence[CellObserver]) -> None:
        self._observers = list(observers)

    def before_cell(self, index: int, cell: NotebookNode) -> None:
        for observer in self._observers:
            observer.before_cell(index, cell)

    def after_cell(self, index: int, cell: NotebookNode) -> None:
        for observer in self._observers:
            observer.after_cell(index, cell)

    def on_cell_error(self, index: int, cell: NotebookNode, error: BaseException) -> None:
        for observer in self._observers:
            observer.on_cell_error(index, cell, error)
