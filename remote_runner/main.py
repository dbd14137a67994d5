from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import platform
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from remote_runner.api.routes import router as api_router
from remote_runner.core.config import API_VERSION, SERVER_VERSION, Settings, get_settings
from remote_runner.models.schemas import InfoResponse
from remote_runner.services.cleanup import run_periodic_cleanup


logger = logging.getLogger(__name__)


def _computer_name() -> str:
    if os.name == "nt":
        return os.environ.get("COMPUTERNAME") or platform.node() or "{unknown}"
    return os.environ.get("HOSTNAME") or platform.node() or "{unknown}"


def build_info(settings: Settings) -> InfoResponse:
    return InfoResponse(
        api_version=API_VERSION,
        server_version=SERVER_VERSION,
        computer_name=_computer_name(),
        os_type="windows" if os.name == "nt" else "unix",
        working_dir=str(settings.working_dir),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings: Settings = app.state.settings
    cleanup_task: asyncio.Task[None] | None = None
    if settings.cleanup_enabled:
        cleanup_task = asyncio.create_task(
            run_periodic_cleanup(
                settings.working_dir,
                interval_sec=settings.cleanup_interval_sec,
                max_age_sec=settings.cleanup_max_age_sec,
                max_size_bytes=settings.cleanup_max_size_bytes,
            )
        )
        logger.info("working directory cleanup every %d s", settings.cleanup_interval_sec)
    yield
    if cleanup_task is not None:
        cleanup_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await cleanup_task


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    # Resolved once: every request type works against this exact directory.
    settings = settings.with_overrides(working_dir=settings.working_dir.expanduser().resolve())
    settings.working_dir.mkdir(parents=True, exist_ok=True)

    logger.info(
        "initializing server version=%s api_version=%s working_dir=%s",
        SERVER_VERSION,
        API_VERSION,
        settings.working_dir,
    )

    app = FastAPI(
        title="Remote Runner API",
        version=SERVER_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.info = build_info(settings)

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(api_router, prefix="/api")
    return app


def run(settings: Settings | None = None) -> None:
    """Run the API using Uvicorn.

    Requests that run commands block until the command exits, so make sure
    the commands you submit terminate.
    """
    import uvicorn

    settings = settings or get_settings()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_level=settings.log_level)
