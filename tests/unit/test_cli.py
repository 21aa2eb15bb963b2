"""Tests for the command-line interface."""

import json

import httpx
import pytest

from job_tracker.__main__ import create_parser, main
from job_tracker.config.settings import get_settings
from job_tracker.tracker import coordinator as coordinator_module
from job_tracker.tracker.remote import RemoteClient


@pytest.fixture
def run(tmp_path, capsys):
    """Run the CLI against a temporary local cache."""
    db_path = tmp_path / "cache.db"

    def _run(*args: str) -> tuple[int, str, str]:
        exit_code = main(["--db", str(db_path), *args])
        captured = capsys.readouterr()
        return exit_code, captured.out, captured.err

    return _run


def _added_id(output: str) -> str:
    line = next(line for line in output.splitlines() if line.startswith("Added "))
    return line.split()[1]


def test_cli_without_command_prints_help(capsys) -> None:
    assert main([]) == 0
    assert "usage" in capsys.readouterr().out


def test_cli_parser_supports_commands() -> None:
    parser = create_parser()

    assert parser.parse_args(["list"]).command == "list"
    assert parser.parse_args(["show", "abc"]).id == "abc"
    assert parser.parse_args(["add", "--company", "Acme"]).status == "applied"
    assert parser.parse_args(["edit", "abc"]).status is None


def test_cli_rejects_unknown_status() -> None:
    with pytest.raises(SystemExit):
        create_parser().parse_args(["add", "--status", "interviewing"])


def test_cli_add_list_show(run) -> None:
    exit_code, out, _ = run("add", "--company", "Acme", "--position", "Engineer")
    assert exit_code == 0
    record_id = _added_id(out)

    exit_code, out, _ = run("list")
    assert exit_code == 0
    assert "Acme - Engineer" in out
    assert "1 of 1 applications" in out

    exit_code, out, _ = run("show", record_id)
    assert exit_code == 0
    data = json.loads(out)
    assert data["companyName"] == "Acme"
    assert data["status"] == "applied"
    assert data["lastUpdated"]


def test_cli_local_mode_prints_no_connection_notice(run) -> None:
    _, out, _ = run("add", "--company", "Acme")
    assert "connection issue" not in out


def test_cli_edit_merges_fields(run) -> None:
    _, out, _ = run("add", "--company", "Acme", "--notes", "keep me")
    record_id = _added_id(out)

    exit_code, out, _ = run("edit", record_id, "--status", "saved")
    assert exit_code == 0
    assert f"Updated {record_id}" in out

    _, out, _ = run("show", record_id)
    data = json.loads(out)
    assert data["status"] == "saved"
    assert data["notes"] == "keep me"


def test_cli_embeds_resume(run, tmp_path) -> None:
    resume = tmp_path / "resume.pdf"
    resume.write_bytes(b"%PDF-1.4")

    _, out, _ = run("add", "--company", "Acme", "--resume", str(resume))
    _, out, _ = run("show", _added_id(out))

    assert json.loads(out)["resumePath"].startswith("data:application/pdf;base64,")


def test_cli_missing_resume_fails_cleanly(run, tmp_path) -> None:
    exit_code, _, err = run("add", "--company", "Acme", "--resume", str(tmp_path / "nope.pdf"))

    assert exit_code == 1
    assert "nope.pdf" in err


def test_cli_list_filters_and_saves_filter(run) -> None:
    run("add", "--company", "Acme", "--status", "applied")
    run("add", "--company", "Beta", "--status", "saved")

    _, out, _ = run("list", "--status", "saved", "--save-filter")
    assert "Beta" in out
    assert "Acme" not in out

    # Saved filter applies to later listings
    _, out, _ = run("list")
    assert "1 of 2 applications" in out

    _, out, _ = run("list", "--status", "all")
    assert "2 of 2 applications" in out


def test_cli_delete(run) -> None:
    _, out, _ = run("add", "--company", "Acme")
    record_id = _added_id(out)

    assert run("delete", record_id)[0] == 0
    exit_code, _, err = run("delete", record_id)
    assert exit_code == 1
    assert "Not found" in err


def test_cli_show_missing(run) -> None:
    exit_code, _, err = run("show", "missing")
    assert exit_code == 1
    assert "Not found" in err


def test_cli_stats(run) -> None:
    run("add", "--company", "Acme", "--status", "applied")
    run("add", "--company", "Beta", "--status", "saved")
    run("add", "--company", "Cobalt", "--status", "applied")

    _, out, _ = run("stats")

    assert "total: 3" in out
    assert "applied: 2" in out
    assert "saved: 1" in out


def test_cli_health_when_remote_disabled(run) -> None:
    exit_code, out, _ = run("health")
    assert exit_code == 1
    assert "remote storage is disabled" in out


def test_cli_falls_back_when_api_unreachable(run, monkeypatch) -> None:
    """Writes print a notice when the API cannot be reached."""
    monkeypatch.setenv("REMOTE_ENABLED", "true")
    monkeypatch.setenv("API_URL", "http://127.0.0.1:9")
    monkeypatch.setenv("REMOTE_TIMEOUT_MS", "500")

    exit_code, out, _ = run("add", "--company", "Acme")

    assert exit_code == 0
    assert "Saved locally due to connection issue" in out

    _, out, _ = run("list")
    assert "Acme" in out


def test_cli_offline_record_editable_after_reconnect(run, monkeypatch, fake_api) -> None:
    """Records added while the API was down can be shown and edited later."""
    monkeypatch.setenv("REMOTE_ENABLED", "true")
    monkeypatch.setenv("API_URL", "http://api.test/api")
    monkeypatch.setattr(
        coordinator_module,
        "RemoteClient",
        lambda base_url, timeout: RemoteClient(
            base_url, timeout=timeout, transport=httpx.MockTransport(fake_api.handler)
        ),
    )

    fake_api.offline = True
    _, out, _ = run("add", "--company", "Acme")
    assert "Saved locally due to connection issue" in out
    record_id = _added_id(out)

    fake_api.offline = False
    exit_code, out, _ = run("show", record_id)
    assert exit_code == 0
    assert json.loads(out)["companyName"] == "Acme"

    exit_code, out, _ = run("edit", record_id, "--status", "saved")
    assert exit_code == 0
    assert f"Updated {record_id}" in out
    assert "connection issue" not in out

    _, out, _ = run("show", record_id)
    assert json.loads(out)["status"] == "saved"
    assert record_id not in fake_api.records


def test_cli_reads_the_settings_singleton(run, monkeypatch) -> None:
    """Settings loaded earlier in the process are reused, not re-read."""
    assert get_settings().remote_enabled is False
    monkeypatch.setenv("REMOTE_ENABLED", "true")
    monkeypatch.setenv("API_URL", "http://127.0.0.1:9")

    _, out, _ = run("add", "--company", "Acme")

    assert "connection issue" not in out


def test_cli_invalid_settings_fail_cleanly(run, monkeypatch) -> None:
    monkeypatch.setenv("REMOTE_TIMEOUT_MS", "0")

    exit_code, _, err = run("list")

    assert exit_code == 1
    assert "Error loading settings" in err
