"""Core domain models used across the application."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum


class Classification(StrEnum):
    """Triage class assigned to an inbound message."""

    IMPORTANT = "important"
    MARKETING = "marketing"
    NEUTRAL = "neutral"


class ActionKind(StrEnum):
    """Terminal outcome recorded for a processed message."""

    REPLIED = "replied"
    UNSUBSCRIBED = "unsubscribed"
    ARCHIVED = "archived"
    SKIPPED = "skipped"
    ERROR = "error"


class UnsubscribeKind(StrEnum):
    """Mechanism used to reach an unsubscribe target."""

    MAILTO = "mailto"
    HTTP_LINK = "http-link"


class HeaderMap(Mapping[str, str]):
    """Read-only header mapping with case-insensitive keys.

    The first occurrence of a repeated header wins, values are kept exactly
    as received.
    """

    __slots__ = ("_items",)

    def __init__(
        self, headers: Mapping[str, str] | Iterable[tuple[str, str]] | None = None
    ) -> None:
        pairs: Iterable[tuple[str, str]]
        if headers is None:
            pairs = ()
        elif isinstance(headers, Mapping):
            pairs = headers.items()
        else:
            pairs = headers
        items: dict[str, tuple[str, str]] = {}
        for name, value in pairs:
            items.setdefault(name.lower(), (name, value))
        self._items = items

    def __getitem__(self, key: str) -> str:
        return self._items[key.lower()][1]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._items

    def __iter__(self) -> Iterator[str]:
        return (name for name, _ in self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"HeaderMap({dict(self.items())!r})"


@dataclass(frozen=True, slots=True)
class EmailBody:
    """Container for textual representations of an email."""

    text: str | None
    html: str | None


# pylint: disable=too-many-instance-attributes
@dataclass(frozen=True, slots=True)
class InboundMessage:
    """One unseen message fetched from the mailbox."""

    id: str
    sender: str
    subject: str
    body: EmailBody
    headers: HeaderMap
    received_at: datetime
    sender_name: str | None = None
    message_id: str | None = None


@dataclass(frozen=True, slots=True)
class UnsubscribeTarget:
    """Machine-actionable unsubscribe endpoint advertised by a message."""

    kind: UnsubscribeKind
    target: str
    one_click: bool = False


@dataclass(frozen=True, slots=True)
class OutgoingMessage:
    """Composed email ready for the send collaborator.

    Attributes:
        to: Recipient email address
        subject: Email subject line
        body: Plain text body content
        in_reply_to: Message-ID of the original email (for threading)
        references: Space-separated Message-IDs for thread context
    """

    to: str
    subject: str
    body: str
    in_reply_to: str | None = None
    references: str | None = None


@dataclass(frozen=True, slots=True)
class Decision:
    """Action chosen for a message together with the reason behind it."""

    action: ActionKind
    reason: str
    target: UnsubscribeTarget | None = None


@dataclass(frozen=True, slots=True)
class ActionRecord:
    """Audit entry describing what happened to one message."""

    id: str
    subject: str
    sender: str
    timestamp: datetime
    action: ActionKind
    detail: str
    recorded_at: datetime


# pylint: disable=too-many-instance-attributes
@dataclass(frozen=True, slots=True)
class RunSummary:
    """Aggregate report of one automation run."""

    started_at: datetime
    completed_at: datetime
    total_fetched: int
    replies_sent: int
    unsubscribed: int
    archived: int
    skipped: int
    errors: int
    actions: tuple[ActionRecord, ...] = field(default_factory=tuple)

    @classmethod
    def from_records(
        cls,
        started_at: datetime,
        completed_at: datetime,
        records: Sequence[ActionRecord],
    ) -> RunSummary:
        """Build a summary whose counters are tallied from ``records``."""
        tally = Counter(record.action for record in records)
        return cls(
            started_at=started_at,
            completed_at=completed_at,
            total_fetched=len(records),
            replies_sent=tally[ActionKind.REPLIED],
            unsubscribed=tally[ActionKind.UNSUBSCRIBED],
            archived=tally[ActionKind.ARCHIVED],
            skipped=tally[ActionKind.SKIPPED],
            errors=tally[ActionKind.ERROR],
            actions=tuple(records),
        )


__all__ = [
    "ActionKind",
    "ActionRecord",
    "Classification",
    "Decision",
    "EmailBody",
    "HeaderMap",
    "InboundMessage",
    "OutgoingMessage",
    "RunSummary",
    "UnsubscribeKind",
    "UnsubscribeTarget",
]
