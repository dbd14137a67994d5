from __future__ import annotations

import logging
import os
from pathlib import Path, PurePath, PurePosixPath, PureWindowsPath

from remote_runner.core.errors import (
    FileMissingError,
    FileUnreadableError,
    InvalidPathError,
    PathOutsideRootError,
)


logger = logging.getLogger(__name__)


def _is_absolute(relative: str) -> bool:
    if PurePosixPath(relative).is_absolute():
        return True
    if os.name == "nt":
        # Drive-relative ("C:x") and root-relative ("\\x") paths leave the root on Windows only.
        win = PureWindowsPath(relative)
        return win.is_absolute() or bool(win.drive) or relative.startswith("\\")
    return False


def _check_representable(relative: str) -> None:
    if "\x00" in relative:
        raise InvalidPathError(relative, "path contains a NUL byte")
    try:
        os.fsencode(relative)
    except UnicodeError as exc:
        raise InvalidPathError(relative, "path is not encodable for the filesystem") from exc


def resolve_in_root(root: Path, relative: str) -> Path:
    """Resolve ``relative`` against ``root`` without ever leaving it.

    Symlinks are followed before the containment check, so a link pointing
    outside the root is rejected just like a ``..`` escape. Raises
    ``PathOutsideRootError`` instead of clamping the path, and
    ``InvalidPathError`` for text no filesystem path can hold.
    """
    _check_representable(relative)
    if _is_absolute(relative):
        raise PathOutsideRootError(relative)

    resolved_root = root.resolve()
    candidate = (resolved_root / PurePath(relative)).resolve()
    if not candidate.is_relative_to(resolved_root):
        logger.info("rejected path outside working directory: %r", relative)
        raise PathOutsideRootError(relative)
    return candidate


def resolve_file(root: Path, relative: str) -> Path:
    """Resolve a file-fetch path; only existing, readable regular files are served."""
    path = resolve_in_root(root, relative)
    if not path.is_file():
        raise FileMissingError(relative)
    if not os.access(path, os.R_OK):
        raise FileUnreadableError(relative)
    return path
