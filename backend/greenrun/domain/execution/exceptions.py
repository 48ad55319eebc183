from greenrun.domain.exceptions import InfrastructureError, NotFoundError, ValidationError


class ExecutionNotFoundError(NotFoundError):
    """Raised when no status record exists for an execution."""

    def __init__(self, execution_id: str) -> None:
        super().__init__("Execution", execution_id)


class LogNotFoundError(NotFoundError):
    """Raised when neither a log object nor a status record exists for an execution."""

    def __init__(self, execution_id: str) -> None:
        self.execution_id = execution_id
        super().__init__("Log file for job", execution_id)


class InvalidNotebookError(ValidationError):
    """Raised when an uploaded file is not a readable .ipynb notebook."""

    pass


class SubmissionError(InfrastructureError):
    """Raised when a submission could not be carried through to a running host."""

    def __init__(self, message: str, execution_id: str | None = None) -> None:
        self.execution_id = execution_id
        super().__init__(message)
