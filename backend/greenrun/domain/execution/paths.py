"""Object keys for every artifact of one execution, all under `executions/{execution_id}/`."""

from greenrun.domain.enums.execution import LogType

EXECUTIONS_PREFIX = "executions"
BOOTSTRAP_FILE_NAME = "run_notebook.sh"
LOCAL_SHUTDOWN_REASON_FILE = "shutdown_reason.txt"


def execution_prefix(execution_id: str) -> str:
    return f"{EXECUTIONS_PREFIX}/{execution_id}"


def status_key(execution_id: str) -> str:
    return f"{execution_prefix(execution_id)}/status.json"


def shutdown_marker_key(execution_id: str) -> str:
    return f"{execution_prefix(execution_id)}/shutdown_marker.json"


def log_file_name(log_type: LogType) -> str:
    return f"{log_type}.log"


def log_key(execution_id: str, log_type: LogType) -> str:
    return f"{execution_prefix(execution_id)}/{log_file_name(log_type)}"


def source_notebook_key(execution_id: str, file_name: str) -> str:
    return f"{execution_prefix(execution_id)}/{file_name}"


def executed_file_name(file_name: str) -> str:
    return f"executed-{file_name}"


def executed_notebook_key(execution_id: str, file_name: str) -> str:
    return f"{execution_prefix(execution_id)}/{executed_file_name(file_name)}"


def partial_file_name(execution_id: str) -> str:
    return f"partial_{execution_id}.ipynb"


def partial_notebook_key(execution_id: str) -> str:
    return f"{execution_prefix(execution_id)}/{partial_file_name(execution_id)}"


def bootstrap_key(execution_id: str) -> str:
    return f"{execution_prefix(execution_id)}/{BOOTSTRAP_FILE_NAME}"
