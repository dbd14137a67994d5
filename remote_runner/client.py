"""HTTP client for a remote runner server.

Shares the wire models with the server, so requests and responses are
validated on both ends the same way. Runs block until the remote command
exits, which is why no timeout is set by default.
"""

from __future__ import annotations

import logging

import httpx

from remote_runner.models.schemas import (
    FileRequest,
    InfoResponse,
    RunSpec,
    RunStatus,
    ScriptSpec,
    run_status_adapter,
)

logger = logging.getLogger(__name__)


class RunnerClientError(Exception):
    """Raised when the server answers with an unexpected HTTP status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class FileForbiddenError(RunnerClientError):
    """The requested path lies outside the server working directory."""


class FileNotFoundOnServer(RunnerClientError):
    """The requested path does not name a regular file on the server."""


class RunnerClient:
    def __init__(
        self,
        base_url: str = "http://127.0.0.1:8000",
        timeout: float | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._owns_client = http_client is None
        if http_client is None:
            http_client = httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout)
        self._client = http_client

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "RunnerClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def health(self) -> bool:
        try:
            resp = self._client.get("/health")
        except httpx.HTTPError as e:
            logger.debug("health check failed: %s", e)
            return False
        return resp.status_code == 200

    def info(self) -> InfoResponse:
        resp = self._client.get("/api/info")
        self._raise_for_status(resp)
        return InfoResponse.model_validate(resp.json())

    def run(self, spec: RunSpec) -> RunStatus:
        resp = self._client.post("/api/run", json=spec.model_dump(mode="json"))
        self._raise_for_status(resp)
        return run_status_adapter.validate_python(resp.json())

    def run_script(self, spec: ScriptSpec) -> RunStatus:
        resp = self._client.post("/api/runscript", json=spec.model_dump(mode="json"))
        self._raise_for_status(resp)
        return run_status_adapter.validate_python(resp.json())

    def fetch_file(self, path: str) -> bytes:
        resp = self._client.get("/api/file", params=FileRequest(path=path).model_dump())
        if resp.status_code == 403:
            raise FileForbiddenError(_detail(resp), status_code=403)
        if resp.status_code == 404:
            raise FileNotFoundOnServer(_detail(resp), status_code=404)
        self._raise_for_status(resp)
        return resp.content

    @staticmethod
    def _raise_for_status(resp: httpx.Response) -> None:
        if resp.is_success:
            return
        raise RunnerClientError(
            f"{resp.request.method} {resp.request.url.path} failed with "
            f"{resp.status_code}: {_detail(resp)}",
            status_code=resp.status_code,
        )


def _detail(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text
    if isinstance(body, dict) and "detail" in body:
        return str(body["detail"])
    return resp.text
