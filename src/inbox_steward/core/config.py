"""Application configuration models and loader utilities."""

from __future__ import annotations

import os
from collections.abc import Mapping
from enum import StrEnum
from functools import lru_cache
from pathlib import Path
from typing import Any, cast

from dotenv import dotenv_values
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .interfaces import ConfigurationError

DEFAULT_MAX_EMAILS = 20
MAX_EMAILS_CAP = 100
DEFAULT_IMPORTANT_KEYWORDS: tuple[str, ...] = (
    "urgent",
    "asap",
    "as soon as possible",
    "deadline",
    "important",
)
DEFAULT_REPLY_SIGNATURE = "Best regards,\n[Your Name]\n[Title / Team]\n[Company]"


class UnsubscribeMode(StrEnum):
    """How marketing mail is handled."""

    UNSUBSCRIBE = "unsubscribe"
    ARCHIVE = "archive"


class _RequestModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class ImapSettings(_RequestModel):
    """Settings controlling IMAP connectivity."""

    host: str = Field(min_length=1, description="IMAP hostname")
    port: int = Field(default=993, ge=1, le=65535, description="IMAP port")
    secure: bool = Field(default=True, description="Connect with implicit TLS")
    user: str = Field(min_length=1, description="Account username")
    password: str = Field(min_length=1, repr=False, description="Account password")
    mailbox: str = Field(default="INBOX", description="Folder to triage")

    @field_validator("host", "user", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("mailbox", mode="before")
    @classmethod
    def _default_mailbox(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return "INBOX"
        return value.strip() if isinstance(value, str) else value


class SmtpSettings(_RequestModel):
    """Settings for the outgoing mail server and reply identity."""

    host: str = Field(min_length=1, description="SMTP hostname")
    port: int = Field(default=465, ge=1, le=65535, description="SMTP port")
    secure: bool = Field(
        default=True, description="Implicit TLS; STARTTLS is attempted otherwise"
    )
    user: str = Field(default="", description="SMTP username")
    password: str = Field(default="", repr=False, description="SMTP password")
    from_name: str = Field(default="", alias="fromName")
    from_address: str = Field(default="", alias="fromAddress")
    reply_signature: str = Field(
        default=DEFAULT_REPLY_SIGNATURE, alias="replySignature"
    )

    @property
    def sender_address(self) -> str:
        """Address used in the ``From`` header."""
        return self.from_address or self.user


class AgentSettings(_RequestModel):
    """Triage policy applied to every message in a run."""

    important_keywords: tuple[str, ...] = Field(
        default=DEFAULT_IMPORTANT_KEYWORDS, alias="importantKeywords"
    )
    skip_marketing_replies: bool = Field(default=True, alias="skipMarketingReplies")
    unsubscribe_mode: UnsubscribeMode = Field(
        default=UnsubscribeMode.UNSUBSCRIBE, alias="unsubscribeMode"
    )
    auto_acknowledge: bool = Field(default=True, alias="autoAcknowledge")

    @field_validator("important_keywords", mode="before")
    @classmethod
    def _normalize_keywords(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.split(",")
        if not isinstance(value, (list, tuple)):
            return value
        keywords: list[str] = []
        for raw in value:
            if not isinstance(raw, str):
                return value
            keyword = raw.strip().lower()
            if keyword and keyword not in keywords:
                keywords.append(keyword)
        return tuple(keywords)


class AgentRequest(_RequestModel):
    """Complete configuration for one automation run."""

    imap: ImapSettings
    smtp: SmtpSettings
    agent: AgentSettings = Field(default_factory=AgentSettings)
    max_emails: int = Field(default=DEFAULT_MAX_EMAILS, ge=0, alias="maxEmails")

    @field_validator("max_emails", mode="before")
    @classmethod
    def _default_when_blank(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return DEFAULT_MAX_EMAILS
        return value

    @field_validator("max_emails")
    @classmethod
    def _cap(cls, value: int) -> int:
        return min(value, MAX_EMAILS_CAP)


class LoggingSettings(BaseModel):
    """Logging preferences."""

    level: str = Field(default="INFO", description="Root logging level")
    structured: bool = Field(
        default=False, description="Emit key=value structured log lines"
    )


class EngineSettings(BaseModel):
    """Settings controlling how a run is executed."""

    max_workers: int = Field(
        default=1, ge=1, le=8, description="Messages processed concurrently"
    )
    deadline_seconds: float | None = Field(
        default=None, gt=0, description="Stop starting new messages after this"
    )
    unsubscribe_timeout_seconds: float = Field(
        default=10.0, gt=0, description="Timeout for HTTP unsubscribe calls"
    )
    user_agent: str = Field(
        default="inbox-steward/0.1", description="User-Agent for HTTP calls"
    )
    promotional_markers: tuple[str, ...] = Field(
        default=(), description="Extra subject markers treated as bulk mail"
    )

    @field_validator("promotional_markers", mode="before")
    @classmethod
    def _split_markers(cls, value: Any) -> Any:
        if isinstance(value, str):
            return tuple(
                marker.strip().lower() for marker in value.split(",") if marker.strip()
            )
        return value


class WebSettings(BaseModel):
    """Bind address for the HTTP boundary."""

    host: str = Field(default="127.0.0.1", description="Interface to bind")
    port: int = Field(default=8000, ge=1, le=65535, description="Port to bind")


class AppSettings(BaseModel):
    """Aggregated application configuration."""

    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    engine: EngineSettings = Field(default_factory=EngineSettings)
    web: WebSettings = Field(default_factory=WebSettings)
    request: AgentRequest | None = Field(
        default=None, description="Default run request used by the CLI"
    )


ENV_PREFIX = "INBOX_STEWARD_"


def _normalize_key(raw_key: str) -> list[str]:
    """Convert an environment variable key into a nested attribute path."""
    trimmed = raw_key.removeprefix(ENV_PREFIX)
    return [segment.lower() for segment in trimmed.split("__") if segment]


def _merge_into_tree(tree: dict[str, Any], path: list[str], value: Any) -> None:
    """Assign a value to a nested dictionary given a path."""
    cursor = tree
    for segment in path[:-1]:
        next_node = cursor.setdefault(segment, {})
        cursor = cast(dict[str, Any], next_node)
    cursor[path[-1]] = value


def _collect_env_values(
    env_file: Path | str | None, include_environment: bool = True
) -> dict[str, Any]:
    """Load configuration values from environment variables and optional file."""
    collected: dict[str, Any] = {}

    file_values = {}
    if env_file:
        env_path = Path(env_file)
        if env_path.is_file():
            file_values = {
                key: value
                for key, value in dotenv_values(env_path).items()
                if key and key.startswith(ENV_PREFIX)
            }

    env_values = {}
    if include_environment:
        env_values = {
            key: value
            for key, value in os.environ.items()
            if key.startswith(ENV_PREFIX)
        }

    combined: dict[str, Any] = {**file_values, **env_values}

    for key, value in combined.items():
        path = _normalize_key(key)
        if not path:
            continue
        normalized_value: Any = value
        if isinstance(value, str) and value == "":
            normalized_value = None
        elif isinstance(value, str):
            lowercase_value = value.lower()
            if lowercase_value == "true":
                normalized_value = True
            elif lowercase_value == "false":
                normalized_value = False
        _merge_into_tree(collected, path, normalized_value)

    return collected


@lru_cache(maxsize=1)
def load_app_settings(
    env_file: Path | str | None = None,
    include_environment: bool = True,
    **overrides: Any,
) -> AppSettings:
    """Load application settings, applying env files and overrides."""
    collected = _collect_env_values(env_file, include_environment)
    if overrides:
        collected.update(overrides)
    return AppSettings.model_validate(collected)


def parse_request(payload: Mapping[str, Any]) -> AgentRequest:
    """Validate a raw request body into an :class:`AgentRequest`."""
    try:
        return AgentRequest.model_validate(payload)
    except ValidationError as exc:
        errors = exc.errors(
            include_url=False, include_context=False, include_input=False
        )
        raise ConfigurationError("Validation failed", errors) from exc


__all__ = [
    "AgentRequest",
    "AgentSettings",
    "AppSettings",
    "EngineSettings",
    "ImapSettings",
    "LoggingSettings",
    "SmtpSettings",
    "UnsubscribeMode",
    "WebSettings",
    "load_app_settings",
    "parse_request",
]
