import uvicorn
from dishka import AsyncContainer
from dishka.integrations.fastapi import setup_dishka
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from greenrun.api.routes import carbon, executions, health, notebooks, sse
from greenrun.core.container import create_app_container
from greenrun.core.dishka_lifespan import lifespan
from greenrun.core.exceptions import configure_exception_handlers
from greenrun.settings import Settings


def create_app(settings: Settings | None = None, container: AsyncContainer | None = None) -> FastAPI:
    settings = settings or Settings()
    app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

    setup_dishka(container or create_app_container(settings), app)

    if settings.CORS_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.CORS_ORIGINS,
            allow_credentials=True,
            allow_methods=["GET", "POST"],
            allow_headers=["Content-Type", "Accept", "Origin", "X-Requested-With", "Last-Event-ID"],
            expose_headers=["Content-Disposition", "Content-Length"],
        )

    app.include_router(notebooks.router, prefix=settings.API_V1_STR)
    app.include_router(executions.router, prefix=settings.API_V1_STR)
    app.include_router(sse.router, prefix=settings.API_V1_STR)
    app.include_router(carbon.router, prefix=settings.API_V1_STR)
    app.include_router(health.router, prefix=settings.API_V1_STR)

    configure_exception_handlers(app)

    return app


def run() -> None:
    settings = Settings()
    uvicorn.run(
        create_app(settings),
        host=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
        log_config=None,
    )


if __name__ == "__main__":
    run()
