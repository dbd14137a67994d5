from __future__ import annotations

import base64
import binascii
from typing import Annotated, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictInt,
    StrictStr,
    TypeAdapter,
    model_validator,
)


class _WireModel(BaseModel):
    # Unknown fields are ignored so older peers keep working when fields are added.
    model_config = ConfigDict(frozen=True, extra="ignore")


class _StdinModel(_WireModel):
    """Stdin as UTF-8 text (``stdin``) or as exact bytes (``stdin_b64``), never both."""

    @model_validator(mode="after")
    def _check_stdin(self) -> "_StdinModel":
        if self.stdin is not None and self.stdin_b64 is not None:
            raise ValueError("set at most one of 'stdin' and 'stdin_b64'")
        if self.stdin_b64 is not None:
            try:
                base64.b64decode(self.stdin_b64, validate=True)
            except (binascii.Error, ValueError) as exc:
                raise ValueError(f"'stdin_b64' is not valid base64: {exc}") from exc
        return self

    def stdin_payload(self) -> str | bytes | None:
        if self.stdin_b64 is not None:
            return base64.b64decode(self.stdin_b64, validate=True)
        return self.stdin


class RunSpec(_StdinModel):
    command: StrictStr = Field(..., min_length=1, description="Executable name on PATH or a path to it.")
    args: list[StrictStr] = Field(
        default_factory=list, description="Arguments passed verbatim, never through a shell."
    )
    stdin: StrictStr | None = Field(None, description="Optional stdin passed to the program.")
    stdin_b64: StrictStr | None = Field(None, description="Optional stdin as base64-encoded bytes.")
    working_dir: StrictStr | None = Field(
        None, description="Subdirectory of the server working directory to run in."
    )
    return_stdout: StrictBool = Field(True, description="Include captured stdout in the result.")
    return_stderr: StrictBool = Field(True, description="Include captured stderr in the result.")


class ScriptSpec(_StdinModel):
    interpreter: StrictStr = Field(..., min_length=1, description="Interpreter the script is run with.")
    script_body: StrictStr = Field(..., description="Script source, written to a file before running.")
    args: list[StrictStr] = Field(default_factory=list, description="Arguments passed to the script.")
    stdin: StrictStr | None = Field(None, description="Optional stdin passed to the interpreter.")
    stdin_b64: StrictStr | None = Field(None, description="Optional stdin as base64-encoded bytes.")
    working_dir: StrictStr | None = Field(
        None, description="Subdirectory the script is written to and run in."
    )
    return_stdout: StrictBool = Field(True, description="Include captured stdout in the result.")
    return_stderr: StrictBool = Field(True, description="Include captured stderr in the result.")


class RunResult(_WireModel):
    """Captured result of a process that ran.

    ``stdout``/``stderr`` are UTF-8 text. When a stream is not valid UTF-8 the
    text holds replacement characters and the matching ``*_b64`` field holds
    the exact bytes.
    """

    exit_code: StrictInt | None = Field(..., description="Exit code, or null when killed by a signal.")
    signal: StrictInt | None = Field(None, description="Signal number that terminated the process.")
    stdout: StrictStr | None = None
    stderr: StrictStr | None = None
    stdout_b64: StrictStr | None = None
    stderr_b64: StrictStr | None = None
    duration_ms: StrictInt

    def stdout_bytes(self) -> bytes | None:
        return _raw(self.stdout, self.stdout_b64)

    def stderr_bytes(self) -> bytes | None:
        return _raw(self.stderr, self.stderr_b64)


def _raw(text: str | None, encoded: str | None) -> bytes | None:
    if encoded is not None:
        return base64.b64decode(encoded)
    if text is None:
        return None
    return text.encode("utf-8")


class Success(_WireModel):
    status: Literal["success"] = "success"
    id: StrictStr
    result: RunResult


class Failure(_WireModel):
    status: Literal["failure"] = "failure"
    id: StrictStr
    reason: StrictStr
    result: RunResult


class Error(_WireModel):
    status: Literal["error"] = "error"
    id: StrictStr
    message: StrictStr


RunStatus = Annotated[Union[Success, Failure, Error], Field(discriminator="status")]

run_status_adapter: TypeAdapter[RunStatus] = TypeAdapter(RunStatus)


class FileRequest(_WireModel):
    path: StrictStr = Field(..., description="Path relative to the server working directory.")


class InfoResponse(_WireModel):
    api_version: StrictStr
    server_version: StrictStr
    computer_name: StrictStr
    os_type: Literal["unix", "windows"]
    working_dir: StrictStr
