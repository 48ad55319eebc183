import pytest

from greenrun.infrastructure.compute import render_bootstrap_script

pytestmark = pytest.mark.unit


def _render(**overrides: object) -> str:
    kwargs: dict = {
        "execution_id": "e1",
        "file_name": "my notebook.ipynb",
        "bucket": "test-bucket",
        "notebook_uri": "s3://test-bucket/executions/e1/my notebook.ipynb",
        "output_uri": "s3://test-bucket/executions/e1/executed-my notebook.ipynb",
        "workdir": "/work",
    }
    kwargs.update(overrides)
    return render_bootstrap_script(**kwargs)


def test_script_launches_executor_with_canonical_arguments() -> None:
    script = _render()

    assert script.startswith("#!/bin/bash")
    assert "greenrun-executor" in script
    assert "'my notebook.ipynb'" in script
    assert "'executed-my notebook.ipynb'" in script
    assert "executions/e1/status.json" in script
    assert "cd \"$WORKDIR\"" in script
    assert "${" not in script


def test_auto_execute_flag_is_rendered() -> None:
    assert "if [ true != \"true\" ]" in _render()
    assert "if [ false != \"true\" ]" in _render(auto_execute=False)
