from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from dishka import AsyncContainer
from fastapi import FastAPI

from greenrun.settings import Settings


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan with dishka dependency injection.

    Clients (Redis, HTTP, Kubernetes) are created lazily by the container on first
    use and released when the container closes.
    """
    container: AsyncContainer = app.state.dishka_container
    settings = await container.get(Settings)
    logger = await container.get(structlog.stdlib.BoundLogger)
    logger.info(
        "Starting application with dishka DI",
        project_name=settings.PROJECT_NAME,
        environment="test" if settings.TESTING else "production",
        storage_bucket=settings.STORAGE_BUCKET,
    )

    yield

    logger.info("Shutting down application")
    await container.close()
