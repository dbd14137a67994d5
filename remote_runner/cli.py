"""Command-line entry point for the remote runner server.

Every option falls back to the matching environment variable, then to the
built-in default (see ``remote_runner.core.config``).
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from remote_runner.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

_LOG_LEVELS = ("critical", "error", "warning", "info", "debug")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="remote-runner",
        description="Run commands and scripts on this host over HTTP",
    )
    parser.add_argument("--host", type=str, default=None, help="Interface to bind (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=None, help="Port to listen on (default: 8000)")
    parser.add_argument(
        "--working-dir",
        type=Path,
        default=None,
        help="Directory commands run in and files are served from",
    )
    parser.add_argument("--bash-path", type=str, default=None, help="Executable used for bash scripts")
    parser.add_argument(
        "--powershell-path", type=str, default=None,
        help="Executable used for powershell scripts",
    )
    parser.add_argument(
        "--cleanup-max-age", type=int, default=None, metavar="SEC",
        help="Delete working directory entries older than this",
    )
    parser.add_argument(
        "--cleanup-max-size", type=int, default=None, metavar="BYTES",
        help="Delete the oldest working directory entries above this total size",
    )
    parser.add_argument("--log-level", choices=_LOG_LEVELS, default=None, help="Log level")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def settings_from_args(args: argparse.Namespace, base: Settings | None = None) -> Settings:
    base = base or get_settings()
    return base.with_overrides(
        host=args.host,
        port=args.port,
        working_dir=args.working_dir,
        bash_path=args.bash_path,
        powershell_path=args.powershell_path,
        cleanup_max_age_sec=args.cleanup_max_age,
        cleanup_max_size_bytes=args.cleanup_max_size,
        log_level="debug" if args.verbose else args.log_level,
    )


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    settings = settings_from_args(args)
    setup_logging(settings.log_level)
    logger.info("listening on %s:%d", settings.host, settings.port)

    from remote_runner.main import run

    run(settings)


if __name__ == "__main__":
    main()
