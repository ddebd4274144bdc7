"""Execution of decided actions against the mail collaborators."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from inbox_steward.core.config import AgentRequest
from inbox_steward.core.datetime_utils import utc_now
from inbox_steward.core.interfaces import (
    ActionFailure,
    MessageSender,
    UnsubscribeSubmitter,
)
from inbox_steward.core.models import (
    ActionKind,
    ActionRecord,
    Decision,
    InboundMessage,
    UnsubscribeKind,
    UnsubscribeTarget,
)

from .composer import compose_reply
from .unsubscribe import build_unsubscribe_mail

LOGGER = logging.getLogger(__name__)

_FAILURE_PREFIX = {
    ActionKind.REPLIED: "Reply failed",
    ActionKind.UNSUBSCRIBED: "Unsubscribe failed",
}


class ActionExecutor:
    """Perform one decided action and record its outcome.

    Failures never propagate: they become an ``error`` record so the rest of
    the batch keeps running.
    """

    def __init__(
        self,
        sender: MessageSender,
        unsubscriber: UnsubscribeSubmitter,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._sender = sender
        self._unsubscriber = unsubscriber
        self._clock = clock

    def execute(
        self, request: AgentRequest, message: InboundMessage, decision: Decision
    ) -> ActionRecord:
        """Carry out ``decision`` for ``message`` and return its record."""
        try:
            detail = self._perform(request, message, decision)
        except ActionFailure as exc:
            LOGGER.warning(
                "Action %s failed for message %s: %s", decision.action, message.id, exc
            )
            return self.failure_record(message, _failure_detail(decision, exc))
        except Exception as exc:  # pylint: disable=broad-except
            LOGGER.error(
                "Unexpected error performing %s for message %s: %s",
                decision.action,
                message.id,
                exc,
                exc_info=True,
            )
            return self.failure_record(message, _failure_detail(decision, exc))

        LOGGER.info("Message %s: %s (%s)", message.id, decision.action, detail)
        return self._record(message, decision.action, detail)

    def failure_record(self, message: InboundMessage, detail: str) -> ActionRecord:
        """Return an ``error`` record for ``message``."""
        return self._record(message, ActionKind.ERROR, detail)

    def _perform(
        self, request: AgentRequest, message: InboundMessage, decision: Decision
    ) -> str:
        if decision.action is ActionKind.REPLIED:
            if not message.sender:
                raise ActionFailure("Message has no sender address to reply to")
            self._sender.send_message(request, compose_reply(message, request.smtp))
            return f"Acknowledgement sent to {message.sender}"

        if decision.action is ActionKind.UNSUBSCRIBED:
            if decision.target is None:
                raise ActionFailure("No unsubscribe target available")
            return self._unsubscribe(request, decision.target)

        return decision.reason

    def _unsubscribe(self, request: AgentRequest, target: UnsubscribeTarget) -> str:
        if target.kind is UnsubscribeKind.HTTP_LINK:
            self._unsubscriber.submit_unsubscribe(target)
            if target.one_click:
                return f"One-click unsubscribe request posted to {target.target}"
            return f"Unsubscribe link requested: {target.target}"

        try:
            mail = build_unsubscribe_mail(target)
        except ValueError as exc:
            raise ActionFailure(str(exc)) from exc
        self._sender.send_message(request, mail)
        return f"Unsubscribe email sent to {mail.to}"

    def _record(
        self, message: InboundMessage, action: ActionKind, detail: str
    ) -> ActionRecord:
        return ActionRecord(
            id=message.id,
            subject=message.subject,
            sender=message.sender,
            timestamp=message.received_at,
            action=action,
            detail=detail,
            recorded_at=self._clock(),
        )


def _failure_detail(decision: Decision, exc: Exception) -> str:
    prefix = _FAILURE_PREFIX.get(decision.action, "Action failed")
    return f"{prefix}: {exc}"


__all__ = ["ActionExecutor"]
