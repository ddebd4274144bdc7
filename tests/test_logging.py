"""Tests for logging utilities."""

from __future__ import annotations

import logging

from inbox_steward.core.config import LoggingSettings
from inbox_steward.core.logging import configure_logging, redact_secrets


def test_configure_logging_sets_root_level() -> None:
    """configure_logging should set the root logger level according to settings."""

    settings = LoggingSettings(level="DEBUG", structured=False)
    configure_logging(settings)
    assert logging.getLogger().level == logging.DEBUG


def test_structured_logging_quiets_http_client() -> None:
    configure_logging(LoggingSettings(level="info", structured=True))

    assert logging.getLogger().level == logging.INFO
    assert logging.getLogger("httpx").level == logging.WARNING
    formatter = logging.getLogger().handlers[0].formatter
    assert formatter is not None
    assert "level={levelname}" in formatter._fmt  # pylint: disable=protected-access


def test_password_values_are_redacted() -> None:
    assert redact_secrets("login user=me password=hunter2 ok") == (
        "login user=me password=*** ok"
    )
    assert redact_secrets("{'host': 'imap', 'password': 'hunter2'}") == (
        "{'host': 'imap', 'password': '***'}"
    )
    assert redact_secrets('{"smtp": {"password": "s3cret"}}') == (
        '{"smtp": {"password": "***"}}'
    )
    assert redact_secrets("nothing to hide") == "nothing to hide"


def test_console_handler_masks_secrets_in_records() -> None:
    configure_logging(LoggingSettings(level="INFO"))
    handler = logging.getLogger().handlers[0]
    record = logging.LogRecord(
        name="inbox_steward",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="settings: %s",
        args=("password=pw1",),
        exc_info=None,
    )

    assert handler.filter(record)
    assert record.getMessage() == "settings: password=***"
