from dishka import FromDishka
from dishka.integrations.fastapi import DishkaRoute
from fastapi import APIRouter, Query, Request
from sse_starlette.sse import EventSourceResponse

from greenrun.domain.enums.execution import LogType
from greenrun.services.sse import ExecutionStreamService

router = APIRouter(prefix="/events", tags=["sse"], route_class=DishkaRoute)


@router.get("/executions/{execution_id}")
async def execution_status_events(
    execution_id: str,
    request: Request,
    stream_service: FromDishka[ExecutionStreamService],
) -> EventSourceResponse:
    return EventSourceResponse(
        stream_service.create_status_stream(execution_id, is_disconnected=request.is_disconnected)
    )


@router.get("/logs/{execution_id}")
async def execution_log_events(
    execution_id: str,
    request: Request,
    stream_service: FromDishka[ExecutionStreamService],
    log_type: LogType = Query(LogType.EXECUTION, alias="type"),
) -> EventSourceResponse:
    # Checked before the stream opens so an unknown execution is a plain 404
    available = await stream_service.check_log_available(execution_id, log_type)
    return EventSourceResponse(
        stream_service.create_log_stream(
            execution_id, log_type, log_available=available, is_disconnected=request.is_disconnected
        )
    )
