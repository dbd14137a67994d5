from __future__ import annotations

import asyncio
import logging
import os
import shutil
import time
from pathlib import Path


logger = logging.getLogger(__name__)


def entry_size(path: Path) -> int:
    """Total size in bytes of a file, or of every file below a directory."""
    try:
        if path.is_symlink() or path.is_file():
            return path.lstat().st_size
        if not path.is_dir():
            logger.warning("found non-dir non-file entry %s, counting as zero", path)
            return 0
    except OSError:
        logger.warning("failed to read metadata of %s, counting as zero", path)
        return 0

    total = 0
    for dirpath, _dirnames, filenames in os.walk(path):
        for name in filenames:
            try:
                total += os.lstat(os.path.join(dirpath, name)).st_size
            except OSError:
                continue
    return total


def _remove(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()


def cleanup_working_dir(
    root: Path,
    *,
    max_age_sec: int | None,
    max_size_bytes: int | None,
    now: float | None = None,
) -> list[Path]:
    """Delete stale top-level entries of ``root``; returns what was removed.

    First drops entries whose modification time is older than ``max_age_sec``,
    then keeps the newest entries until ``max_size_bytes`` is reached and
    drops the rest.
    """
    removed: list[Path] = []
    current = time.time() if now is None else now

    if max_age_sec is not None:
        for entry in list(root.iterdir()):
            if current - entry.lstat().st_mtime > max_age_sec:
                _remove(entry)
                removed.append(entry)
                logger.debug("deleted %s due to max age", entry)

    if max_size_bytes is not None:
        entries = sorted(root.iterdir(), key=lambda p: p.lstat().st_mtime, reverse=True)
        seen = 0
        for entry in entries:
            if seen <= max_size_bytes:
                seen += entry_size(entry)
            if seen > max_size_bytes:
                _remove(entry)
                removed.append(entry)
                logger.debug("deleted %s due to max size", entry)

    return removed


async def run_periodic_cleanup(
    root: Path,
    *,
    interval_sec: int,
    max_age_sec: int | None,
    max_size_bytes: int | None,
) -> None:
    """Clean up once at startup, then again every ``interval_sec`` seconds.

    A failed pass is logged and the loop keeps going.
    """
    while True:
        try:
            removed = await asyncio.to_thread(
                cleanup_working_dir,
                root,
                max_age_sec=max_age_sec,
                max_size_bytes=max_size_bytes,
            )
        except OSError as exc:
            logger.warning("working directory cleanup failed: %s", exc)
        else:
            if removed:
                logger.info("cleanup removed %d entries from %s", len(removed), root)
        await asyncio.sleep(interval_sec)
