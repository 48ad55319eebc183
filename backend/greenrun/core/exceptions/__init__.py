from greenrun.core.exceptions.handlers import configure_exception_handlers
from greenrun.domain.exceptions import (
    ConflictError,
    DomainError,
    InfrastructureError,
    InvalidStateError,
    NotFoundError,
    PollTimeoutError,
    ServiceUnavailableError,
    ValidationError,
)

__all__ = [
    "ConflictError",
    "DomainError",
    "InfrastructureError",
    "InvalidStateError",
    "NotFoundError",
    "PollTimeoutError",
    "ServiceUnavailableError",
    "ValidationError",
    "configure_exception_handlers",
]
