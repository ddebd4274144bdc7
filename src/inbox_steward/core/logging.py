"""Logging configuration helpers."""

from __future__ import annotations

import logging
import logging.config
import re
from typing import Any

from .config import LoggingSettings

_QUIET_LIBRARIES = ("httpx", "httpcore")

# key=value, key: value and JSON/repr style pairs whose key names a credential.
_SECRET_PAIR = re.compile(
    r"""(?P<key>['"]?\b(?:password|passwd|app_password|secret|token)\b['"]?\s*[:=]\s*)"""
    r"""(?P<quote>['"]?)(?P<value>[^\s'",}]+)""",
    re.IGNORECASE,
)
REDACTED = "***"


class SecretRedactingFilter(logging.Filter):
    """Mask credential values in the rendered message of every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact_secrets(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def redact_secrets(text: str) -> str:
    """Return ``text`` with the values of password-like pairs masked."""
    return _SECRET_PAIR.sub(
        lambda match: f"{match['key']}{match['quote']}{REDACTED}", text
    )


def _structured_formatter() -> dict[str, Any]:
    """Return a dictConfig fragment for key=value structured logs."""
    return {
        "format": "ts={asctime} level={levelname} logger={name} msg={message!r}",
        "style": "{",
    }


def _plain_formatter() -> dict[str, Any]:
    """Return a dictConfig fragment for human readable logs."""
    return {
        "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
    }


def configure_logging(settings: LoggingSettings) -> None:
    """Configure application logging according to provided settings."""
    formatter = _structured_formatter() if settings.structured else _plain_formatter()
    level = settings.level.upper()

    dict_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "redact": {"()": SecretRedactingFilter},
        },
        "formatters": {
            "default": formatter,
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "filters": ["redact"],
                "level": level,
            },
        },
        "loggers": {
            # httpx logs every request URL at INFO.
            name: {"level": "WARNING"}
            for name in _QUIET_LIBRARIES
        },
        "root": {
            "handlers": ["console"],
            "level": level,
        },
    }

    logging.config.dictConfig(dict_config)


__all__ = ["SecretRedactingFilter", "configure_logging", "redact_secrets"]
