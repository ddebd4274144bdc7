"""Shared pytest fixtures."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from helpers import build_message, build_request
from inbox_steward.core.config import AgentRequest
from inbox_steward.core.models import InboundMessage


@pytest.fixture
def make_message() -> Callable[..., InboundMessage]:
    """Factory for inbound messages with sensible defaults."""
    return build_message


@pytest.fixture
def make_request() -> Callable[..., AgentRequest]:
    """Factory for run requests; keyword arguments override agent options."""
    return build_request
