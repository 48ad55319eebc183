from pathlib import Path

from nbformat import NotebookNode


def _text(value: object) -> str:
    if isinstance(value, list):
        return "".join(str(part) for part in value)
    return str(value)


class CellOutputRecorder:
    """Cell observer appending each cell's stream and error outputs to a local log file."""

    def __init__(self, path: Path) -> None:
        self._path = path

    def before_cell(self, index: int, cell: NotebookNode) -> None:
        pass

    def after_cell(self, index: int, cell: NotebookNode) -> None:
        self._write(index, cell)

    def on_cell_error(self, index: int, cell: NotebookNode, error: BaseException) -> None:
        self._write(index, cell)

    def _write(self, index: int, cell: NotebookNode) -> None:
        lines = [f"--- cell {index} ---\n"]
        for output in cell.get("outputs", []):
            output_type = output.get("output_type")
            if output_type == "stream":
                lines.append(_text(output.get("text", "")))
            elif output_type == "error":
                lines.append("\n".join(output.get("traceback", [])) + "\n")
            elif output_type in ("execute_result", "display_data"):
                text = output.get("data", {}).get("text/plain")
                if text is not None:
                    lines.append(_text(text) + "\n")
        with self._path.open("a", encoding="utf-8") as f:
            f.writelines(lines)
