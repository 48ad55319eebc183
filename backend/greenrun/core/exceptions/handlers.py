from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

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


def configure_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
        return JSONResponse(
            status_code=_map_to_status_code(exc),
            content={"detail": exc.message, "type": type(exc).__name__},
        )


def _map_to_status_code(exc: DomainError) -> int:
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, ValidationError):
        return 422
    if isinstance(exc, ConflictError):
        return 409
    if isinstance(exc, InvalidStateError):
        return 400
    if isinstance(exc, PollTimeoutError):
        return 504
    if isinstance(exc, ServiceUnavailableError):
        return 503
    if isinstance(exc, InfrastructureError):
        return 500
    return 500
