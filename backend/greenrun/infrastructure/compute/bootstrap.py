import shlex
from pathlib import Path
from string import Template

from greenrun.domain.execution import paths

TEMPLATE_PATH = Path(__file__).parent / "templates" / "run_notebook.sh"


def render_bootstrap_script(
    execution_id: str,
    file_name: str,
    bucket: str,
    notebook_uri: str,
    output_uri: str,
    workdir: str,
    auto_execute: bool = True,
) -> str:
    """Render the host's on-start script that launches the executor CLI for one execution."""
    template = Template(TEMPLATE_PATH.read_text(encoding="utf-8"))
    values = {
        "execution_id": execution_id,
        "file_name": file_name,
        "executed_file_name": paths.executed_file_name(file_name),
        "bucket": bucket,
        "status_key": paths.status_key(execution_id),
        "notebook_uri": notebook_uri,
        "output_uri": output_uri,
        "workdir": workdir,
        "auto_execute": "true" if auto_execute else "false",
    }
    return template.substitute({name: shlex.quote(value) for name, value in values.items()})
