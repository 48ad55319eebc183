from typing import Annotated

from dishka import FromDishka
from dishka.integrations.fastapi import DishkaRoute
from fastapi import APIRouter, File, Form, Response, UploadFile

from greenrun.schemas_pydantic.notebook import CleanupRequest, CleanupResponse, NotebookSubmitResponse
from greenrun.services.launch_orchestrator import LaunchOrchestrator
from greenrun.services.status_service import ExecutionStatusService

router = APIRouter(prefix="/notebooks", tags=["notebooks"], route_class=DishkaRoute)


@router.post("", response_model=NotebookSubmitResponse)
async def submit_notebook(
    orchestrator: FromDishka[LaunchOrchestrator],
    uploaded_file: Annotated[UploadFile, File(alias="uploadedFile")],
    auto_execute: Annotated[bool, Form()] = True,
) -> NotebookSubmitResponse:
    content = await uploaded_file.read()
    result = await orchestrator.submit(content, uploaded_file.filename or "", auto_execute=auto_execute)
    return NotebookSubmitResponse(message="Notebook is running on a compute host", data=result)


@router.post("/cleanup", response_model=CleanupResponse)
async def cleanup_notebook_host(
    request: CleanupRequest,
    orchestrator: FromDishka[LaunchOrchestrator],
) -> CleanupResponse:
    await orchestrator.cleanup(request.instance_name)
    return CleanupResponse(message=f"Compute host {request.instance_name} deletion has been initiated")


@router.get("/{execution_id}/download")
async def download_executed_notebook(
    execution_id: str,
    status_service: FromDishka[ExecutionStatusService],
) -> Response:
    file_name, content = await status_service.get_executed_notebook(execution_id)
    return Response(
        content=content,
        media_type="application/x-ipynb+json",
        headers={"Content-Disposition": f'attachment; filename="{file_name}"'},
    )
