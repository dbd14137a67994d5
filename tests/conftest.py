"""Shared fixtures: an app bound to a throwaway working directory."""

from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from remote_runner.core.config import Settings
from remote_runner.main import create_app


@pytest.fixture
def workdir(tmp_path: Path) -> Path:
    root = tmp_path / "work"
    root.mkdir()
    return root.resolve()


@pytest.fixture
def settings(workdir: Path) -> Settings:
    return Settings(working_dir=workdir)


@pytest.fixture
def client(settings: Settings) -> TestClient:
    return TestClient(create_app(settings))
