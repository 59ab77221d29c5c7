"""FastAPI entrypoint for the reference location catalog service."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from geocascade.api.http.health import router as health_router
from geocascade.api.http.locations import router as locations_router
from geocascade.core.config import Settings
from geocascade.core.container import build_container
from geocascade.core.lifecycle import on_shutdown, on_startup
from geocascade.infra.observability.access_log import install_access_log
from geocascade.infra.observability.logger import resolve_level, setup_logging


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the app; the catalog file is loaded here so a missing file fails before serving."""
    settings = settings or Settings.from_env()
    setup_logging(settings.log_level)
    container = build_container(settings)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        on_startup(container)
        try:
            yield
        finally:
            on_shutdown()

    app = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)
    app.state.settings = settings
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    install_access_log(app)

    for router in (health_router, locations_router):
        app.include_router(router)
    return app


def run() -> None:
    import uvicorn

    settings = Settings.from_env()
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=resolve_level(settings.log_level).lower(),
    )


if __name__ == "__main__":
    run()
