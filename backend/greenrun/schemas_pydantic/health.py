from pydantic import BaseModel, Field


class LivenessResponse(BaseModel):
    """Response model for liveness probe."""

    status: str = Field(description="Health status")
    uptime_seconds: int = Field(description="Server uptime in seconds")
    timestamp: str = Field(description="ISO timestamp of health check")
