from __future__ import annotations

import logging
import secrets
from pathlib import Path

from remote_runner.core.config import Settings
from remote_runner.services.executor import ProcessOutcome, SpawnError, execute_command


logger = logging.getLogger(__name__)

_EXTENSIONS: dict[str, str] = {
    "bash": ".sh",
    "sh": ".sh",
    "dash": ".sh",
    "zsh": ".sh",
    "python": ".py",
    "python3": ".py",
    "powershell": ".ps1",
    "pwsh": ".ps1",
    "cmd": ".bat",
}


def _interpreter_key(interpreter: str) -> str:
    name = Path(interpreter).name.lower()
    return name[:-4] if name.endswith(".exe") else name


def script_extension(interpreter: str) -> str:
    return _EXTENSIONS.get(_interpreter_key(interpreter), "")


def resolve_interpreter(interpreter: str, settings: Settings) -> list[str]:
    """Return the argv prefix that runs a script file with ``interpreter``.

    Bare names (``bash``, ``bash.exe``, ``Pwsh``) go through the configured
    paths; an explicit path such as ``/opt/bin/bash`` is used as given.
    """
    key = _interpreter_key(interpreter)
    bare = Path(interpreter).name == interpreter
    if bare and key == "bash":
        return [settings.bash_path]
    if bare and key in ("powershell", "pwsh"):
        return [settings.powershell_path, "-NoProfile", "-File"]
    if key == "cmd":
        return [interpreter, "/D", "/C"]
    return [interpreter]


def write_script(directory: Path, body: str, interpreter: str) -> Path:
    # Encode first so an unencodable body never leaves an empty file behind.
    data = body.encode("utf-8")
    token = secrets.token_hex(8)
    path = directory / f"script_{token}{script_extension(interpreter)}"
    # "x" mode: never overwrite a file that is already there.
    with open(path, "xb") as fh:
        fh.write(data)
    return path


def execute_script(
    *,
    interpreter: str,
    script_body: str,
    args: list[str],
    stdin: str | bytes | None,
    cwd: Path,
    settings: Settings,
    run_id: str = "-",
) -> ProcessOutcome:
    """Persist ``script_body`` inside ``cwd`` and run it with ``interpreter``.

    The script file is left in place after the run. If it cannot be written,
    nothing is spawned and a ``SpawnError`` is returned.
    """
    try:
        script_path = write_script(cwd, script_body, interpreter)
    except UnicodeError as exc:
        logger.warning("%s> script body is not encodable as UTF-8: %s", run_id, exc)
        return SpawnError(message=f"script body is not encodable as UTF-8: {exc}")
    except OSError as exc:
        logger.error("%s> failed to write script data: %s", run_id, exc)
        return SpawnError(message=f"failed to write script data: {exc.strerror or exc}")
    logger.debug("%s> script path: %s", run_id, script_path)

    command, *prefix_args = resolve_interpreter(interpreter, settings)
    return execute_command(
        command=command,
        args=[*prefix_args, str(script_path), *args],
        stdin=stdin,
        cwd=cwd,
        run_id=run_id,
    )
