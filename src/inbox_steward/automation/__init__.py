"""Mailbox automation engine: classify, decide, act, summarise."""

from .classifier import BulkSignal, MessageClassifier, classify, default_bulk_signals
from .composer import compose_reply, reply_subject
from .decision import decide
from .executor import ActionExecutor
from .orchestrator import MailboxAutomation, build_automation
from .unsubscribe import build_unsubscribe_mail, resolve_unsubscribe_target

__all__ = [
    "ActionExecutor",
    "BulkSignal",
    "MailboxAutomation",
    "MessageClassifier",
    "build_automation",
    "build_unsubscribe_mail",
    "classify",
    "compose_reply",
    "decide",
    "default_bulk_signals",
    "reply_subject",
    "resolve_unsubscribe_target",
]
