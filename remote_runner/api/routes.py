from __future__ import annotations

import logging
import uuid
from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import FileResponse

from remote_runner.core.config import Settings
from remote_runner.core.errors import FileMissingError, InvalidPathError, PathOutsideRootError
from remote_runner.models.schemas import FileRequest, InfoResponse, RunSpec, RunStatus, ScriptSpec
from remote_runner.services.executor import execute_command
from remote_runner.services.files import resolve_file, resolve_in_root
from remote_runner.services.scripts import execute_script
from remote_runner.services.status import build_run_status


logger = logging.getLogger(__name__)

router = APIRouter()


def app_settings(request: Request) -> Settings:
    return request.app.state.settings


def _new_run_id() -> str:
    return uuid.uuid4().hex


def _run_directory(settings: Settings, working_dir: str | None) -> Path:
    if working_dir is None:
        return settings.working_dir
    try:
        return resolve_in_root(settings.working_dir, working_dir)
    except InvalidPathError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except PathOutsideRootError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc


@router.get("/info", response_model=InfoResponse)
async def info(request: Request) -> InfoResponse:
    logger.debug("sending info")
    return request.app.state.info


@router.post("/run", response_model=RunStatus, status_code=status.HTTP_200_OK)
def run_command(req: RunSpec, settings: Settings = Depends(app_settings)) -> RunStatus:
    """Run a command synchronously and report how it ended.

    Note: there is no authentication and no sandbox. Only expose this on a
    trusted network.
    """
    run_id = _new_run_id()
    logger.info("%s> received command", run_id)
    logger.debug("%s> command: %s", run_id, req.command)
    logger.debug("%s> arguments: %r", run_id, req.args)

    cwd = _run_directory(settings, req.working_dir)
    outcome = execute_command(
        command=req.command,
        args=req.args,
        stdin=req.stdin_payload(),
        cwd=cwd,
        run_id=run_id,
    )
    return build_run_status(
        run_id,
        outcome,
        return_stdout=req.return_stdout,
        return_stderr=req.return_stderr,
    )


@router.post("/runscript", response_model=RunStatus, status_code=status.HTTP_200_OK)
def run_script(req: ScriptSpec, settings: Settings = Depends(app_settings)) -> RunStatus:
    run_id = _new_run_id()
    logger.info("%s> received script", run_id)
    logger.debug("%s> interpreter: %s", run_id, req.interpreter)
    logger.debug("%s> script: %r", run_id, req.script_body)

    cwd = _run_directory(settings, req.working_dir)
    outcome = execute_script(
        interpreter=req.interpreter,
        script_body=req.script_body,
        args=req.args,
        stdin=req.stdin_payload(),
        cwd=cwd,
        settings=settings,
        run_id=run_id,
    )
    return build_run_status(
        run_id,
        outcome,
        return_stdout=req.return_stdout,
        return_stderr=req.return_stderr,
    )


@router.get("/file", response_class=FileResponse)
def get_file(
    path: str = Query(..., description="Path relative to the server working directory."),
    settings: Settings = Depends(app_settings),
) -> FileResponse:
    req = FileRequest(path=path)
    try:
        resolved = resolve_file(settings.working_dir, req.path)
    except InvalidPathError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except PathOutsideRootError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    except FileMissingError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    logger.debug("serving file %s", resolved)
    return FileResponse(resolved, media_type="application/octet-stream")
