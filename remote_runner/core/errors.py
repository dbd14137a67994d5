from __future__ import annotations


class RunnerError(Exception):
    """Base class for errors raised by the runner services."""


class PathOutsideRootError(RunnerError):
    """A client-supplied path resolves outside the working directory."""

    def __init__(self, path: str) -> None:
        super().__init__(f"path escapes the working directory: {path!r}")
        self.path = path


class InvalidPathError(RunnerError):
    """A client-supplied path cannot name any file (NUL byte, unencodable text)."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"invalid path {path!r}: {reason}")
        self.path = path
        self.reason = reason


class FileMissingError(RunnerError):
    """The requested path does not exist or is not a regular file."""

    template = "no such file: {path!r}"

    def __init__(self, path: str) -> None:
        super().__init__(self.template.format(path=path))
        self.path = path


class FileUnreadableError(FileMissingError):
    """The file exists but the server process may not read it."""

    template = "file is not readable: {path!r}"
