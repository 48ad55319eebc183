from pydantic import BaseModel, ConfigDict, Field

from greenrun.domain.execution.models import SubmissionResult


class NotebookSubmitResponse(BaseModel):
    success: bool = True
    message: str
    data: SubmissionResult


class CleanupRequest(BaseModel):
    instance_name: str = Field(alias="instanceName", min_length=1)

    model_config = ConfigDict(populate_by_name=True)


class CleanupResponse(BaseModel):
    success: bool = True
    message: str
