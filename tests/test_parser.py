"""Tests for RFC822 parsing into inbound messages."""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from inbox_steward.ingestion import EmailParser

FIXTURE_PATH = Path(__file__).parent / "fixtures" / "sample_email.eml"


def test_email_parser_extracts_headers_and_bodies() -> None:
    payload = FIXTURE_PATH.read_bytes()
    parser = EmailParser()

    message = parser.parse("101", payload)

    assert message.id == "101"
    assert message.subject == "Quarterly report deadline"
    assert message.sender == "alice@example.com"
    assert message.sender_name == "Alice Smith"
    assert message.message_id == "<1234@example.com>"
    assert message.body.text == "Hello world."
    assert "<strong>world</strong>" in (message.body.html or "")
    assert "attachment" not in (message.body.text or "")
    assert message.received_at == datetime(2025, 3, 4, 9, 30, tzinfo=UTC)


def test_headers_are_case_insensitive() -> None:
    message = EmailParser().parse("101", FIXTURE_PATH.read_bytes())

    assert message.headers.get("list-unsubscribe", "").startswith("<mailto:")
    assert message.headers["LIST-UNSUBSCRIBE-POST"] == "List-Unsubscribe=One-Click"
    assert message.headers["references"] == "<thread@example.com>"


def test_missing_headers_fall_back() -> None:
    fetched_at = datetime(2025, 1, 1, 12, 0, tzinfo=UTC)
    payload = b"Content-Type: text/plain\r\n\r\nJust a body\r\n"

    message = EmailParser().parse("7", payload, fetched_at=fetched_at)

    assert message.subject == ""
    assert message.sender == ""
    assert message.sender_name is None
    assert message.message_id is None
    assert message.received_at == fetched_at
    assert message.body.text == "Just a body"
    assert message.body.html is None


def test_naive_date_is_treated_as_utc() -> None:
    payload = (
        b"From: bob@example.com\r\n"
        b"Subject: hi\r\n"
        b"Date: Tue, 04 Mar 2025 10:30:00 -0000\r\n"
        b"\r\n"
        b"body\r\n"
    )

    message = EmailParser().parse("8", payload)

    assert message.received_at == datetime(2025, 3, 4, 10, 30, tzinfo=UTC)
    assert message.received_at.tzinfo is not None
