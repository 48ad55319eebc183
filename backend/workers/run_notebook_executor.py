"""Run one notebook on a compute host; invoked by the host's bootstrap script"""

import argparse
import sys
from pathlib import Path

from greenrun.core.container import create_executor_container
from greenrun.core.logging import setup_logger
from greenrun.domain.enums.execution import LogType
from greenrun.domain.execution import paths
from greenrun.services.executor import EXIT_FAILED, ExecutionRequest, NotebookExecutor
from greenrun.settings import Settings

DEFAULT_CONFIG_PATH = "/etc/greenrun/config.toml"
DEFAULT_SECRETS_PATH = "/etc/greenrun/secrets.toml"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="greenrun-executor", description="Execute a notebook with status tracking")
    parser.add_argument("input_notebook", help="Local path of the notebook to run (downloaded if missing)")
    parser.add_argument("output_notebook", help="Local path for the executed notebook")
    parser.add_argument("execution_id")
    parser.add_argument("output_bucket", help="Bucket holding the execution's status and artifacts")
    parser.add_argument("status_key", help="Status object key, normally executions/<id>/status.json")
    parser.add_argument("notebook_source_path", help="Storage URI of the uploaded notebook")
    parser.add_argument("output_path", help="Storage URI for the executed notebook")
    parser.add_argument("--config", default=DEFAULT_CONFIG_PATH, help="Path to config.toml")
    parser.add_argument("--secrets", default=DEFAULT_SECRETS_PATH, help="Path to secrets.toml")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the notebook executor"""
    args = parse_args(argv)
    settings = Settings(config_path=args.config, secrets_path=args.secrets)

    workdir = Path(settings.EXECUTOR_WORKDIR)
    workdir.mkdir(parents=True, exist_ok=True)
    logger = setup_logger(settings.LOG_LEVEL, log_file=str(workdir / paths.log_file_name(LogType.EXECUTION)))
    logger = logger.bind(execution_id=args.execution_id)
    logger.info("Starting notebook executor", input_notebook=args.input_notebook, output_path=args.output_path)

    request = ExecutionRequest(
        input_notebook=Path(args.input_notebook),
        output_notebook=Path(args.output_notebook),
        execution_id=args.execution_id,
        output_bucket=args.output_bucket,
        status_key=args.status_key,
        notebook_source_path=args.notebook_source_path,
        output_path=args.output_path,
    )

    container = create_executor_container(settings, request, logger)
    try:
        executor = container.get(NotebookExecutor)
        exit_code = executor.execute(request)
    except Exception:
        logger.critical("Notebook executor could not run", exc_info=True)
        exit_code = EXIT_FAILED
    finally:
        container.close()

    logger.info("Notebook executor finished", exit_code=exit_code)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
