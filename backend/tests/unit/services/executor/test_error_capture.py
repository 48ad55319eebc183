import nbformat
import pytest
from nbclient.exceptions import CellExecutionError

from greenrun.services.executor.error_capture import (
    build_error_detail,
    collect_system_info,
    describe_error,
    extract_cell_error_output,
)

pytestmark = pytest.mark.unit


def test_describe_prefers_kernel_exception_name() -> None:
    error = CellExecutionError("traceback text", "ZeroDivisionError", "division by zero")

    assert describe_error(error) == ("ZeroDivisionError", "division by zero")


def test_describe_falls_back_to_python_type() -> None:
    assert describe_error(FileNotFoundError("missing.ipynb")) == ("FileNotFoundError", "missing.ipynb")


def test_error_outputs_keep_order_and_skip_stdout() -> None:
    cell = nbformat.v4.new_code_cell("1/0")
    cell.outputs = [
        nbformat.v4.new_output("stream", name="stdout", text="fine\n"),
        nbformat.v4.new_output("stream", name="stderr", text="careful\n"),
        nbformat.v4.new_output("error", ename="ZeroDivisionError", evalue="division by zero", traceback=["tb"]),
    ]

    outputs = extract_cell_error_output(cell)

    assert outputs is not None
    assert [o.stderr for o in outputs] == ["careful\n", None]
    assert outputs[1].ename == "ZeroDivisionError"
    assert outputs[1].traceback == ["tb"]


def test_no_error_outputs_is_none() -> None:
    assert extract_cell_error_output(nbformat.v4.new_code_cell("x = 1")) is None


def test_error_detail_truncates_source() -> None:
    detail = build_error_detail(ValueError("bad"), 4, "x" * 600)

    assert detail.cell_index == 4
    assert detail.error_type == "ValueError"
    assert detail.cell_source == "x" * 500 + "..."


def test_system_info_hides_secret_variables(monkeypatch) -> None:
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "very-secret")
    monkeypatch.setenv("GREENRUN_MODE", "batch")

    info = collect_system_info()

    env = info["environment_variables"]
    assert "AWS_SECRET_ACCESS_KEY" not in env
    assert env["GREENRUN_MODE"] == "batch"
    assert "python_version" in info
