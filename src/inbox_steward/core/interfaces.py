"""Protocol interfaces and error taxonomy for the automation engine."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Protocol

from .models import InboundMessage, OutgoingMessage, UnsubscribeTarget

if TYPE_CHECKING:
    from .config import AgentRequest


class ConfigurationError(ValueError):
    """Raised when a run request is malformed or incomplete."""

    def __init__(self, message: str, errors: Sequence[Any] = ()) -> None:
        super().__init__(message)
        self.errors = list(errors)


class FetchFailure(RuntimeError):
    """Raised when the message batch could not be obtained at all."""


class ActionFailure(RuntimeError):
    """Raised by collaborators when a single send or unsubscribe fails."""


class MessageSource(Protocol):
    """Abstraction over the mailbox holding unseen messages."""

    def fetch_unseen(
        self, request: AgentRequest, limit: int
    ) -> Sequence[InboundMessage]:
        """Return up to ``limit`` unseen messages from the configured folder."""
        raise NotImplementedError


class MessageSender(Protocol):
    """Abstraction over the outgoing mail transport."""

    def send_message(self, request: AgentRequest, message: OutgoingMessage) -> None:
        """Send ``message``; raise :class:`ActionFailure` when it is rejected."""
        raise NotImplementedError


class UnsubscribeSubmitter(Protocol):
    """Performs HTTP unsubscribe requests."""

    def submit_unsubscribe(self, target: UnsubscribeTarget) -> None:
        """Request removal from the list behind ``target``."""
        raise NotImplementedError


__all__ = [
    "ActionFailure",
    "ConfigurationError",
    "FetchFailure",
    "MessageSender",
    "MessageSource",
    "UnsubscribeSubmitter",
]
