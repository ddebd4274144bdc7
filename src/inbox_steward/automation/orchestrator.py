"""Run orchestration: fetch a bounded batch and drive it through the pipeline."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Protocol

from inbox_steward.core.config import AgentRequest, EngineSettings
from inbox_steward.core.datetime_utils import utc_now
from inbox_steward.core.interfaces import (
    FetchFailure,
    MessageSender,
    MessageSource,
    UnsubscribeSubmitter,
)
from inbox_steward.core.models import ActionRecord, InboundMessage, RunSummary

from .classifier import BulkSignal, MessageClassifier, default_bulk_signals
from .decision import decide
from .executor import ActionExecutor
from .unsubscribe import resolve_unsubscribe_target

LOGGER = logging.getLogger(__name__)

_Outcome = tuple[int, ActionRecord]


class GatewayLike(MessageSource, MessageSender, UnsubscribeSubmitter, Protocol):
    """A single object providing all three collaborator seams."""


class MailboxAutomation:
    """Process one batch of unseen messages and summarise the results.

    Runs are independent: no state is carried from one ``run`` call to the
    next. Only a failure to fetch the batch aborts a run.
    """

    def __init__(
        self,
        source: MessageSource,
        executor: ActionExecutor,
        *,
        settings: EngineSettings | None = None,
        bulk_signals: Sequence[BulkSignal] | None = None,
        clock: Callable[[], datetime] = utc_now,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self._source = source
        self._executor = executor
        self._settings = settings or EngineSettings()
        self._bulk_signals = (
            tuple(bulk_signals)
            if bulk_signals is not None
            else default_bulk_signals(self._settings.promotional_markers)
        )
        self._clock = clock
        self._monotonic = monotonic

    def run(self, request: AgentRequest) -> RunSummary:
        """Execute a triage run for ``request``.

        Raises:
            FetchFailure: If the message batch could not be obtained
        """
        messages = self._fetch(request)
        started_at = self._clock()
        deadline = (
            self._monotonic() + self._settings.deadline_seconds
            if self._settings.deadline_seconds is not None
            else None
        )
        classifier = MessageClassifier(
            request.agent.important_keywords, self._bulk_signals
        )

        records = self._process_all(request, messages, classifier, deadline)
        completed_at = self._clock()
        summary = RunSummary.from_records(started_at, completed_at, records)

        unreached = len(messages) - len(records)
        if unreached:
            LOGGER.warning(
                "Deadline reached; %s fetched message(s) were not processed", unreached
            )
        LOGGER.info(
            "Run completed: total=%s replied=%s unsubscribed=%s archived=%s "
            "skipped=%s errors=%s",
            summary.total_fetched,
            summary.replies_sent,
            summary.unsubscribed,
            summary.archived,
            summary.skipped,
            summary.errors,
        )
        return summary

    def _fetch(self, request: AgentRequest) -> list[InboundMessage]:
        limit = request.max_emails
        if limit <= 0:
            LOGGER.info("maxEmails is 0; nothing to fetch")
            return []
        try:
            messages = list(self._source.fetch_unseen(request, limit))
        except FetchFailure:
            raise
        except Exception as exc:
            LOGGER.error("Unable to fetch messages: %s", exc)
            raise FetchFailure(f"Unable to fetch messages: {exc}") from exc
        LOGGER.info("Fetched %s unseen message(s)", len(messages))
        return messages[:limit]

    def _process_all(
        self,
        request: AgentRequest,
        messages: Sequence[InboundMessage],
        classifier: MessageClassifier,
        deadline: float | None,
    ) -> list[ActionRecord]:
        workers = min(self._settings.max_workers, len(messages))
        if workers <= 1:
            results = [
                self._process(index, message, request, classifier, deadline)
                for index, message in enumerate(messages)
            ]
        else:
            with ThreadPoolExecutor(
                max_workers=workers, thread_name_prefix="inbox-steward"
            ) as pool:
                futures = [
                    pool.submit(
                        self._process, index, message, request, classifier, deadline
                    )
                    for index, message in enumerate(messages)
                ]
                results = [future.result() for future in futures]

        outcomes = sorted(
            (outcome for outcome in results if outcome is not None),
            key=lambda outcome: outcome[0],
        )
        return [record for _, record in outcomes]

    def _process(
        self,
        index: int,
        message: InboundMessage,
        request: AgentRequest,
        classifier: MessageClassifier,
        deadline: float | None,
    ) -> _Outcome | None:
        if deadline is not None and self._monotonic() >= deadline:
            LOGGER.debug("Deadline passed before message %s was started", message.id)
            return None

        try:
            classification = classifier.classify(message)
            target = resolve_unsubscribe_target(message)
            decision = decide(classification, target, request.agent)
        except Exception as exc:  # pylint: disable=broad-except
            LOGGER.error(
                "Failed to triage message %s: %s", message.id, exc, exc_info=True
            )
            return index, self._executor.failure_record(
                message, f"Triage failed: {exc}"
            )

        LOGGER.debug(
            "Message %s classified %s -> %s", message.id, classification, decision.action
        )
        return index, self._executor.execute(request, message, decision)


def build_automation(
    gateway: GatewayLike, settings: EngineSettings | None = None
) -> MailboxAutomation:
    """Wire a :class:`MailboxAutomation` around a single gateway object."""
    executor = ActionExecutor(sender=gateway, unsubscriber=gateway)
    return MailboxAutomation(gateway, executor, settings=settings)


__all__ = ["MailboxAutomation", "build_automation"]
