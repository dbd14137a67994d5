from __future__ import annotations

import os
from shutil import which

import httpx
import pytest
from fastapi.testclient import TestClient


def require_posix_tools(*names: str) -> None:
    if os.name != "posix":
        pytest.skip("Skipping: POSIX-only scenario")
    for name in names:
        if which(name) is None:
            pytest.skip(f"Skipping: {name!r} not available on PATH")


def post_raw_json(client: TestClient, url: str, body: str) -> httpx.Response:
    """POST a JSON document verbatim, e.g. one holding escaped lone surrogates."""
    return client.post(url, content=body.encode("ascii"), headers={"content-type": "application/json"})
