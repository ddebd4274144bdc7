"""Tests for the command-line entry point."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from helpers import StubGateway, build_message
from inbox_steward import cli
from inbox_steward.core.config import load_app_settings

REQUEST = {
    "imap": {"host": "imap.example.com", "user": "me@example.com", "password": "pw"},
    "smtp": {"host": "smtp.example.com"},
    "agent": {"importantKeywords": "urgent"},
}


@pytest.fixture(autouse=True)
def clear_settings_cache() -> None:
    load_app_settings.cache_clear()


def _write_request(tmp_path: Path, payload: object) -> Path:
    path = tmp_path / "request.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_run_prints_summary(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    gateway = StubGateway([build_message(subject="urgent"), build_message(id="2")])
    monkeypatch.setattr(cli, "MailGateway", lambda settings: gateway)

    exit_code = cli.main(
        ["run", "--request", str(_write_request(tmp_path, REQUEST)), "--max-emails", "1"]
    )

    assert exit_code == cli.EXIT_OK
    summary = json.loads(capsys.readouterr().out)["summary"]
    assert summary["totalFetched"] == 1
    assert summary["repliesSent"] == 1
    assert gateway.fetch_calls == [1]


def test_invalid_request_exits_with_config_error(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    path = _write_request(tmp_path, {"imap": {}, "smtp": {"host": "smtp.example.com"}})

    exit_code = cli.main(["run", "--request", str(path)])

    assert exit_code == cli.EXIT_BAD_CONFIG
    assert "imap.host" in capsys.readouterr().err


def test_request_file_must_hold_an_object(tmp_path: Path) -> None:
    path = _write_request(tmp_path, [1, 2, 3])

    assert cli.main(["run", "--request", str(path)]) == cli.EXIT_BAD_CONFIG


def test_fetch_failure_exits_non_zero(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    gateway = StubGateway(fetch_error=TimeoutError("IMAP timed out"))
    monkeypatch.setattr(cli, "MailGateway", lambda settings: gateway)

    exit_code = cli.main(["run", "--request", str(_write_request(tmp_path, REQUEST))])

    assert exit_code == cli.EXIT_FETCH_FAILED
    assert "IMAP timed out" in capsys.readouterr().err


def test_info_command_succeeds(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = cli.main([])

    assert exit_code == cli.EXIT_OK
    assert "Inbox Steward is ready." in capsys.readouterr().out
