import os
import platform
from typing import Any

import psutil
from nbformat import NotebookNode

from greenrun.core.logging import sanitize_sensitive_data
from greenrun.domain.execution.models import CellErrorOutput, ErrorDetail
from greenrun.domain.execution.progress import truncate_source

_SECRET_MARKERS = ("SECRET", "KEY", "TOKEN", "PASSWORD", "CREDENTIAL")


def extract_cell_error_output(cell: NotebookNode) -> list[CellErrorOutput] | None:
    """Error payloads and stderr text the cell emitted, in output order."""
    collected: list[CellErrorOutput] = []
    for output in cell.get("outputs", []):
        output_type = output.get("output_type")
        if output_type == "error":
            collected.append(
                CellErrorOutput(
                    ename=output.get("ename", ""),
                    evalue=output.get("evalue", ""),
                    traceback=list(output.get("traceback", [])),
                )
            )
        elif output_type == "stream" and output.get("name") == "stderr":
            text = output.get("text", "")
            collected.append(CellErrorOutput(stderr="".join(text) if isinstance(text, list) else text))
    return collected or None


def describe_error(error: BaseException) -> tuple[str, str]:
    """(errorType, errorMessage), preferring the kernel-side exception name and value when present."""
    ename = getattr(error, "ename", None)
    evalue = getattr(error, "evalue", None)
    if ename:
        return str(ename), str(evalue or "")
    return type(error).__name__, str(error)


def build_error_detail(error: BaseException, cell_index: int | None, cell_source: str | None) -> ErrorDetail:
    error_type, error_message = describe_error(error)
    return ErrorDetail(
        cell_index=cell_index,
        cell_source=truncate_source(cell_source) if cell_source is not None else None,
        error_type=error_type,
        error_message=error_message,
    )


def _is_secret_name(name: str) -> bool:
    upper = name.upper()
    return upper.startswith("AWS_") or any(marker in upper for marker in _SECRET_MARKERS)


def collect_system_info() -> dict[str, Any]:
    """Diagnostic snapshot attached to FAILED records. Never raises."""
    info: dict[str, Any] = {
        "platform": platform.platform(),
        "python_version": platform.python_version(),
        "processor": platform.processor() or platform.machine(),
    }
    try:
        memory = psutil.virtual_memory()
        info["memory"] = {"total": memory.total, "available": memory.available, "percent": memory.percent}
    except (OSError, RuntimeError):
        info["memory"] = "N/A"
    try:
        disk = psutil.disk_usage(os.getcwd())
        info["disk_space"] = {"total": disk.total, "free": disk.free, "percent": disk.percent}
    except (OSError, RuntimeError):
        info["disk_space"] = "N/A"
    info["environment_variables"] = {
        name: sanitize_sensitive_data(value) for name, value in sorted(os.environ.items()) if not _is_secret_name(name)
    }
    return info
