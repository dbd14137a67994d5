from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, field, replace
from functools import lru_cache
from pathlib import Path
from typing import Final


API_VERSION: Final[str] = "2.0.0"
SERVER_VERSION: Final[str] = "0.4.1"

_EIGHT_HOURS_SEC: Final[int] = 8 * 60 * 60


def _int_from_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _optional_int_from_env(name: str) -> int | None:
    raw = os.environ.get(name)
    if not raw:
        return None
    try:
        value = int(raw)
    except ValueError:
        return None
    return value if value > 0 else None


def default_working_dir() -> Path:
    return Path(tempfile.gettempdir()) / "remote-runner"


def _default_powershell() -> str:
    return "powershell" if os.name == "nt" else "pwsh"


@dataclass(frozen=True, slots=True)
class Settings:
    working_dir: Path = field(default_factory=default_working_dir)
    host: str = "127.0.0.1"
    port: int = 8000
    bash_path: str = "bash"
    powershell_path: str = field(default_factory=_default_powershell)
    log_level: str = "info"
    cleanup_interval_sec: int = _EIGHT_HOURS_SEC
    cleanup_max_age_sec: int | None = None      # unset: keep entries regardless of age
    cleanup_max_size_bytes: int | None = None   # unset: no total size cap

    @property
    def cleanup_enabled(self) -> bool:
        return self.cleanup_max_age_sec is not None or self.cleanup_max_size_bytes is not None

    def with_overrides(self, **changes: object) -> "Settings":
        """Return a copy with the non-None values of ``changes`` applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    @staticmethod
    def from_env() -> "Settings":
        working_dir = os.environ.get("RUNNER_WORKING_DIR")
        return Settings(
            working_dir=Path(working_dir) if working_dir else default_working_dir(),
            host=os.environ.get("HOST", "127.0.0.1"),
            port=_int_from_env("PORT", 8000),
            bash_path=os.environ.get("BASH_PATH", "bash"),
            powershell_path=os.environ.get("POWERSHELL_PATH", _default_powershell()),
            log_level=os.environ.get("LOG_LEVEL", "info").lower(),
            cleanup_interval_sec=_int_from_env("CLEANUP_INTERVAL_SEC", _EIGHT_HOURS_SEC),
            cleanup_max_age_sec=_optional_int_from_env("CLEANUP_MAX_AGE_SEC"),
            cleanup_max_size_bytes=_optional_int_from_env("CLEANUP_MAX_SIZE_BYTES"),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
