from __future__ import annotations

import base64
from pathlib import Path

from fastapi.testclient import TestClient

from remote_runner.core.config import Settings
from remote_runner.services.scripts import resolve_interpreter, script_extension
from tests.support import post_raw_json, require_posix_tools


def test_sh_script_prints_hi(client: TestClient) -> None:
    require_posix_tools("sh")

    response = client.post(
        "/api/runscript",
        json={"interpreter": "sh", "script_body": "echo hi", "args": []},
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "success"
    assert payload["result"]["stdout"] == "hi\n"


def test_script_receives_arguments_and_stdin(client: TestClient) -> None:
    require_posix_tools("sh")

    response = client.post(
        "/api/runscript",
        json={
            "interpreter": "sh",
            "script_body": 'read line\necho "$1-$2-$line"\n',
            "args": ["first", "second word"],
            "stdin": "from stdin\n",
        },
    )

    assert response.json()["result"]["stdout"] == "first-second word-from stdin\n"


def test_script_file_is_kept_in_working_directory(client: TestClient, workdir: Path) -> None:
    require_posix_tools("sh")

    client.post("/api/runscript", json={"interpreter": "sh", "script_body": "exit 0"})
    client.post("/api/runscript", json={"interpreter": "sh", "script_body": "exit 0"})

    scripts = sorted(workdir.glob("script_*.sh"))
    assert len(scripts) == 2
    assert scripts[0].read_text() == "exit 0"


def test_script_runs_in_requested_subdirectory(client: TestClient, workdir: Path) -> None:
    require_posix_tools("sh")
    task_dir = workdir / "task-9ae4ef2b9d13"
    task_dir.mkdir()

    response = client.post(
        "/api/runscript",
        json={"interpreter": "sh", "script_body": "pwd > out.txt", "working_dir": "task-9ae4ef2b9d13"},
    )

    assert response.json()["status"] == "success"
    assert Path((task_dir / "out.txt").read_text().strip()).resolve() == task_dir
    assert list(task_dir.glob("script_*.sh"))


def test_failing_script_is_failure(client: TestClient) -> None:
    require_posix_tools("sh")

    response = client.post(
        "/api/runscript",
        json={"interpreter": "sh", "script_body": "echo bad >&2\nexit 3\n"},
    )

    payload = response.json()
    assert payload["status"] == "failure"
    assert payload["result"]["exit_code"] == 3
    assert payload["result"]["stderr"] == "bad\n"


def test_missing_interpreter_is_error(client: TestClient) -> None:
    response = client.post(
        "/api/runscript",
        json={"interpreter": "no-such-interpreter-xyz", "script_body": "whatever"},
    )

    payload = response.json()
    assert payload["status"] == "error"
    assert "no-such-interpreter-xyz" in payload["message"]


def test_unwritable_location_is_error_without_spawning(client: TestClient, workdir: Path) -> None:
    response = client.post(
        "/api/runscript",
        json={"interpreter": "sh", "script_body": "touch spawned", "working_dir": "missing-dir"},
    )

    payload = response.json()
    assert payload["status"] == "error"
    assert "failed to write script data" in payload["message"]
    assert not (workdir / "spawned").exists()


def test_script_working_dir_escape_is_forbidden(client: TestClient, workdir: Path) -> None:
    response = client.post(
        "/api/runscript",
        json={"interpreter": "sh", "script_body": "echo hi", "working_dir": "../"},
    )

    assert response.status_code == 403
    assert not list(workdir.parent.glob("script_*"))


def test_interpreter_aliases_follow_settings() -> None:
    settings = Settings(bash_path="/opt/bash/bin/bash", powershell_path="pwsh-preview")

    assert resolve_interpreter("bash", settings) == ["/opt/bash/bin/bash"]
    assert resolve_interpreter("pwsh", settings)[0] == "pwsh-preview"
    assert resolve_interpreter("python3", settings) == ["python3"]


def test_interpreter_aliases_ignore_case_and_exe_suffix() -> None:
    settings = Settings(bash_path="/opt/bash/bin/bash", powershell_path="pwsh-preview")

    assert resolve_interpreter("bash.exe", settings) == ["/opt/bash/bin/bash"]
    assert resolve_interpreter("BASH", settings) == ["/opt/bash/bin/bash"]
    assert resolve_interpreter("Pwsh", settings) == ["pwsh-preview", "-NoProfile", "-File"]
    assert resolve_interpreter("PowerShell.exe", settings)[0] == "pwsh-preview"


def test_explicit_interpreter_path_is_used_as_given() -> None:
    settings = Settings(bash_path="/opt/bash/bin/bash")

    assert resolve_interpreter("/usr/local/bin/bash", settings) == ["/usr/local/bin/bash"]


def test_script_extension_by_interpreter() -> None:
    assert script_extension("bash") == ".sh"
    assert script_extension("/usr/bin/python3") == ".py"
    assert script_extension("powershell.exe") == ".ps1"
    assert script_extension("perl") == ""


def test_unencodable_script_body_is_error_without_writing(client: TestClient, workdir: Path) -> None:
    response = post_raw_json(
        client,
        "/api/runscript",
        '{"interpreter": "sh", "script_body": "echo \\ud800"}',
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "error"
    assert "script body" in payload["message"]
    assert not list(workdir.glob("script_*"))


def test_unencodable_script_stdin_is_error(client: TestClient, workdir: Path) -> None:
    require_posix_tools("sh")

    response = post_raw_json(
        client,
        "/api/runscript",
        '{"interpreter": "sh", "script_body": "touch spawned; cat", "stdin": "\\ud800"}',
    )

    assert response.status_code == 200
    assert response.json()["status"] == "error"
    assert not (workdir / "spawned").exists()


def test_script_output_that_is_not_utf8_keeps_exact_bytes(client: TestClient) -> None:
    require_posix_tools("sh", "printf")

    response = client.post(
        "/api/runscript",
        json={"interpreter": "sh", "script_body": "printf '\\377\\376ok' >&2"},
    )

    result = response.json()["result"]
    assert result["stderr_b64"] == base64.b64encode(b"\xff\xfeok").decode("ascii")
    assert result["stdout_b64"] is None
