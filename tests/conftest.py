"""Pytest configuration for making the src package importable."""

import json
import sys
from pathlib import Path

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
SRC_DIR = ROOT_DIR / "src"

if SRC_DIR.exists():
    sys.path.insert(0, str(SRC_DIR))

from pipeline_runs.types import HttpRequest, HttpResponse  # noqa: E402


class FakeTransport:
    """Replays queued responses (or raises queued exceptions) and records every request."""

    def __init__(self, responses: list[HttpResponse | Exception]):
        self._responses = list(responses)
        self.requests: list[HttpRequest] = []

    def send(self, request: HttpRequest) -> HttpResponse:
        self.requests.append(request)
        if not self._responses:
            raise AssertionError(f"unexpected extra request: {request.method} {request.url}")
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return HttpResponse(status=response.status, body=response.body, url=request.url)


def json_response(payload: object, status: int = 200) -> HttpResponse:
    return HttpResponse(status=status, body=json.dumps(payload))


def run_payload(run_id: int = 7, state: str = "inProgress", result: str | None = None) -> dict[str, object]:
    payload: dict[str, object] = {
        "id": run_id,
        "name": f"20261018.{run_id}",
        "state": state,
        "createdDate": "2026-10-18T10:00:00.0000000Z",
        "url": f"https://dev.azure.com/Org/Proj/_apis/pipelines/42/runs/{run_id}",
        "pipeline": {"id": 42, "name": "ci-build", "folder": "\\", "revision": 3},
        "_links": {"web": {"href": f"https://dev.azure.com/Org/Proj/_build/results?buildId={run_id}"}},
    }
    if result is not None:
        payload["result"] = result
        payload["finishedDate"] = "2026-10-18T10:05:00.0000000Z"
    return payload


@pytest.fixture(autouse=True)
def isolate_environment(tmp_path, monkeypatch):
    """Keep tests away from real credentials, endpoints and trace logs."""
    for var in (
        "AZURE_DEVOPS_EXT_PAT",
        "AZURE_DEVOPS_BASE_URL",
        "AZURE_DEVOPS_API_VERSION",
        "PIPELINE_RUNS_POLL_INTERVAL",
        "PIPELINE_RUNS_REQUEST_TIMEOUT",
    ):
        monkeypatch.delenv(var, raising=False)
    test_log_dir = tmp_path / "test_logs"
    test_log_dir.mkdir(parents=True, exist_ok=True)
    monkeypatch.setenv("TRACE_LOG_DIR", str(test_log_dir))
    monkeypatch.chdir(tmp_path)


@pytest.fixture(autouse=True)
def ignore_dotenv_files(monkeypatch):
    # A developer's .env must not leak a real token into tests
    monkeypatch.setattr("pipeline_runs.config.load_dotenv", lambda *args, **kwargs: False)
