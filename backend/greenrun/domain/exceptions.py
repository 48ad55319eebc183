class DomainError(Exception):
    """Base for all domain errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotFoundError(DomainError):
    """Entity not found (maps to 404)."""

    def __init__(self, entity: str, identifier: str) -> None:
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"{entity} '{identifier}' not found")


class ValidationError(DomainError):
    """Business validation failed (maps to 422)."""

    pass


class ConflictError(DomainError):
    """State conflict - duplicate, already exists, etc (maps to 409)."""

    pass


class InvalidStateError(DomainError):
    """Invalid state for operation (maps to 400)."""

    pass


class InfrastructureError(DomainError):
    """Infrastructure failure - object storage, K8s, upstream APIs, etc (maps to 500)."""

    pass


class ServiceUnavailableError(DomainError):
    """Upstream dependency temporarily unavailable (maps to 503)."""

    pass


class PollTimeoutError(DomainError):
    """A bounded wait elapsed before its condition held.

    Distinct from an execution failure: the execution may still finish later.
    """

    def __init__(self, what: str, timeout: float | None = None, attempts: int | None = None) -> None:
        self.what = what
        self.timeout = timeout
        self.attempts = attempts
        if timeout is not None:
            detail = f"after {timeout:g}s"
        else:
            detail = f"after {attempts} attempts"
        super().__init__(f"Timed out waiting for {what} {detail}")
