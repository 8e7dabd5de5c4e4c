"""CLI wiring tests with a stubbed transport."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from conftest import FakeTransport, json_response, run_payload

from pipeline_runs import cli as cli_mod
from pipeline_runs.types import HttpResponse

BASE_ARGS = ["-o", "Org", "-p", "Proj", "-i", "42", "--no-log"]


@pytest.fixture
def transport(monkeypatch):
    holder: dict[str, FakeTransport] = {}

    def install(responses):
        fake = FakeTransport(responses)
        holder["transport"] = fake
        monkeypatch.setattr(cli_mod, "_build_transport", lambda settings: fake)
        return fake

    return install


@pytest.fixture
def token(monkeypatch):
    monkeypatch.setenv("AZURE_DEVOPS_EXT_PAT", "pat-from-env")


def test_trigger_without_watch_reports_initial_state(token, transport, capsys) -> None:
    fake = transport([json_response(run_payload(run_id=55, state="notStarted"))])

    rc = cli_mod.main(BASE_ARGS)

    assert rc == 0
    assert len(fake.requests) == 1
    assert fake.requests[0].method == "POST"
    out = capsys.readouterr().out
    assert "triggered successfully, run id = [55]" in out
    assert "Run 55 state: notStarted" in out


def test_watch_until_succeeded(token, transport, capsys) -> None:
    fake = transport(
        [
            json_response(run_payload(state="notStarted")),
            json_response(run_payload(state="inProgress")),
            json_response(run_payload(state="completed", result="succeeded")),
        ]
    )

    rc = cli_mod.main(BASE_ARGS + ["--watch", "--interval", "0"])

    assert rc == 0
    assert [r.method for r in fake.requests] == ["POST", "GET", "GET"]
    out = capsys.readouterr().out
    assert "Pipeline status: inProgress" in out
    assert "Run 7 state: completed, result: succeeded" in out


def test_watch_with_failed_result_exits_non_zero(token, transport, capsys) -> None:
    transport(
        [
            json_response(run_payload(state="notStarted")),
            json_response(run_payload(state="completed", result="failed")),
        ]
    )

    rc = cli_mod.main(BASE_ARGS + ["-w", "--interval", "0"])

    assert rc == 1
    assert "result: failed" in capsys.readouterr().out


def test_unauthorized_trigger_reports_remote_error(token, transport, capsys) -> None:
    fake = transport([HttpResponse(status=401, body='{"message": "Access denied"}')])

    rc = cli_mod.main(BASE_ARGS + ["--watch"])

    assert rc == 1
    assert len(fake.requests) == 1
    err = capsys.readouterr().err
    assert "status code: 401" in err
    assert "Access denied" in err
    assert "pat-from-env" not in err


def test_template_parameters_are_forwarded(token, transport) -> None:
    fake = transport([json_response(run_payload(state="notStarted"))])

    rc = cli_mod.main(BASE_ARGS + ["-t", '{"environment": "prod"}', "-b", "refs/heads/main"])

    assert rc == 0
    body = json.loads(fake.requests[0].encoded_body())
    assert body["templateParameters"] == {"environment": "prod"}
    assert body["resources"]["repositories"]["self"]["refName"] == "refs/heads/main"


def test_malformed_parameters_fail_before_any_request(token, transport, capsys) -> None:
    fake = transport([])

    rc = cli_mod.main(BASE_ARGS + ["-t", "{oops"])

    assert rc == 1
    assert fake.requests == []
    assert "not valid JSON" in capsys.readouterr().err


def test_missing_token_fails_before_any_request(transport, capsys) -> None:
    fake = transport([])

    rc = cli_mod.main(BASE_ARGS)

    assert rc == 1
    assert fake.requests == []
    assert "AZURE_DEVOPS_EXT_PAT" in capsys.readouterr().err


def test_pipeline_id_must_be_positive_integer(token, capsys) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli_mod.main(["-o", "Org", "-p", "Proj", "-i", "abc"])

    assert excinfo.value.code == 2


def test_trace_log_is_written_when_enabled(token, transport, tmp_path: Path) -> None:
    transport([json_response(run_payload(state="notStarted"))])

    rc = cli_mod.main(["-o", "Org", "-p", "Proj", "-i", "42"])

    assert rc == 0
    files = list((tmp_path / "test_logs").glob("*.jsonl"))
    assert len(files) == 1
    event = json.loads(files[0].read_text(encoding="utf-8").splitlines()[0])
    assert event["step"] == "trigger"
    assert event["project"] == "Proj"


@pytest.mark.parametrize("raw", ["-5", "nan"])
def test_bad_poll_interval_fails_before_the_run_is_created(token, transport, monkeypatch, capsys, raw: str) -> None:
    monkeypatch.setenv("PIPELINE_RUNS_POLL_INTERVAL", raw)
    fake = transport([json_response(run_payload(state="notStarted"))])

    rc = cli_mod.main(BASE_ARGS + ["--watch"])

    assert rc == 1
    assert fake.requests == []
    assert "configure" in capsys.readouterr().err


@pytest.mark.parametrize("raw", ["-5", "nan"])
def test_bad_request_timeout_fails_before_the_run_is_created(token, transport, monkeypatch, raw: str) -> None:
    monkeypatch.setenv("PIPELINE_RUNS_REQUEST_TIMEOUT", raw)
    fake = transport([json_response(run_payload(state="notStarted"))])

    rc = cli_mod.main(BASE_ARGS + ["--watch"])

    assert rc == 1
    assert fake.requests == []


@pytest.mark.parametrize("flag", ["--interval", "--timeout"])
def test_non_finite_duration_flags_are_usage_errors(token, flag: str) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli_mod.main(BASE_ARGS + ["--watch", flag, "nan"])

    assert excinfo.value.code == 2


def test_trace_flag_prints_events_to_stderr(token, transport, capsys) -> None:
    transport([json_response(run_payload(run_id=21, state="notStarted"))])

    rc = cli_mod.main(BASE_ARGS + ["--trace"])

    assert rc == 0
    captured = capsys.readouterr()
    assert "[trace] trigger organization=Org project=Proj pipeline_id=42 run_id=21" in captured.err
    assert "[trace]" not in captured.out
