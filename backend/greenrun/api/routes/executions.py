from dishka import FromDishka
from dishka.integrations.fastapi import DishkaRoute
from fastapi import APIRouter, Query

from greenrun.domain.execution.models import ExecutionStatusView
from greenrun.services.status_service import ExecutionStatusService

router = APIRouter(prefix="/executions", tags=["executions"], route_class=DishkaRoute)


@router.get("/{execution_id}/status", response_model=ExecutionStatusView, response_model_exclude_none=True)
async def get_execution_status(
    execution_id: str,
    status_service: FromDishka[ExecutionStatusService],
    wait: bool = Query(False, description="Block until the execution is COMPLETED or FAILED"),
    timeout: float | None = Query(None, gt=0, description="Seconds to wait when wait=true"),
) -> ExecutionStatusView:
    if wait:
        return await status_service.wait_for_completion(execution_id, timeout=timeout)
    return await status_service.get_status(execution_id)
