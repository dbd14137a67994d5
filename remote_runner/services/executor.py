from __future__ import annotations

import logging
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Union


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ExecutionResult:
    stdout: bytes
    stderr: bytes
    returncode: int
    duration_ms: int


@dataclass(frozen=True, slots=True)
class SpawnError:
    message: str


ProcessOutcome = Union[ExecutionResult, SpawnError]


def execute_command(
    *,
    command: str,
    args: list[str],
    stdin: str | bytes | None,
    cwd: Path,
    run_id: str = "-",
) -> ProcessOutcome:
    """Run one process to completion and capture everything it wrote.

    Notes:
    - The argument vector is handed to the OS as is; no shell is involved.
    - Blocks until the child exits. There is no timeout and no cancellation.
    - ``communicate`` drains stdout and stderr while feeding stdin, so a chatty
      child cannot deadlock on a full pipe.
    """
    argv = [command, *args]
    try:
        input_bytes = stdin.encode("utf-8") if isinstance(stdin, str) else stdin
    except UnicodeEncodeError as exc:
        return SpawnError(message=f"stdin is not encodable as UTF-8: {exc.reason}")
    logger.debug("%s> argv: %r (cwd=%s)", run_id, argv, cwd)

    start = time.perf_counter()
    try:
        proc = subprocess.Popen(  # nosec: B603 (argv vector, no shell)
            argv,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            cwd=cwd,
            shell=False,
        )
    except OSError as exc:
        logger.debug("%s> failed to start %r: %s", run_id, command, exc)
        return SpawnError(message=f"failed to start {command!r}: {exc.strerror or exc}")
    except ValueError as exc:  # embedded NUL byte or unencodable text in argv
        logger.debug("%s> rejected argv for %r: %s", run_id, command, exc)
        return SpawnError(message=f"failed to start {command!r}: {exc}")

    out, err = proc.communicate(input=input_bytes)
    duration_ms = int((time.perf_counter() - start) * 1000)

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("%s> exited with code %s after %d ms", run_id, proc.returncode, duration_ms)
        logger.debug("%s> stdout:\n%s", run_id, out.decode("utf-8", errors="replace").strip())
        logger.debug("%s> stderr:\n%s", run_id, err.decode("utf-8", errors="replace").strip())

    return ExecutionResult(
        stdout=out or b"",
        stderr=err or b"",
        returncode=proc.returncode,
        duration_ms=duration_ms,
    )
