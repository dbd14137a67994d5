from __future__ import annotations

import base64
import signal

from remote_runner.models.schemas import Error, Failure, RunResult, RunStatus, Success
from remote_runner.services.executor import ExecutionResult, ProcessOutcome, SpawnError


def _signal_name(signum: int) -> str:
    try:
        return signal.Signals(signum).name
    except ValueError:
        return "unknown signal"


def _decode(data: bytes, include: bool) -> tuple[str | None, str | None]:
    """Return the stream as text, plus its exact bytes in base64 when it is not UTF-8."""
    if not include:
        return None, None
    try:
        return data.decode("utf-8"), None
    except UnicodeDecodeError:
        return data.decode("utf-8", errors="replace"), base64.b64encode(data).decode("ascii")


def _to_run_result(result: ExecutionResult, *, return_stdout: bool, return_stderr: bool) -> RunResult:
    # POSIX reports death by signal N as returncode -N.
    killed_by = -result.returncode if result.returncode < 0 else None
    stdout, stdout_b64 = _decode(result.stdout, return_stdout)
    stderr, stderr_b64 = _decode(result.stderr, return_stderr)
    return RunResult(
        exit_code=None if killed_by is not None else result.returncode,
        signal=killed_by,
        stdout=stdout,
        stderr=stderr,
        stdout_b64=stdout_b64,
        stderr_b64=stderr_b64,
        duration_ms=result.duration_ms,
    )


def failure_reason(run_result: RunResult) -> str:
    if run_result.signal is not None:
        return f"terminated by signal {_signal_name(run_result.signal)} ({run_result.signal})"
    return f"exited with code {run_result.exit_code}"


def build_run_status(
    run_id: str,
    outcome: ProcessOutcome,
    *,
    return_stdout: bool = True,
    return_stderr: bool = True,
) -> RunStatus:
    """Map a process outcome onto exactly one ``RunStatus`` variant.

    A spawn failure is an ``Error``. A process that ran is a ``Success`` only
    when it exited normally with code zero, otherwise a ``Failure`` carrying
    everything it produced.
    """
    if isinstance(outcome, SpawnError):
        return Error(id=run_id, message=outcome.message or "process could not be started")

    run_result = _to_run_result(outcome, return_stdout=return_stdout, return_stderr=return_stderr)
    if run_result.exit_code == 0:
        return Success(id=run_id, result=run_result)
    return Failure(id=run_id, reason=failure_reason(run_result), result=run_result)
