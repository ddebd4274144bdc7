"""Core utilities for configuration, logging, and shared models."""

from .config import (
    AgentRequest,
    AppSettings,
    EngineSettings,
    LoggingSettings,
    load_app_settings,
    parse_request,
)
from .interfaces import ActionFailure, ConfigurationError, FetchFailure
from .logging import configure_logging
from .serialization import summary_to_payload

__all__ = [
    "ActionFailure",
    "AgentRequest",
    "AppSettings",
    "ConfigurationError",
    "EngineSettings",
    "FetchFailure",
    "LoggingSettings",
    "configure_logging",
    "load_app_settings",
    "parse_request",
    "summary_to_payload",
]
