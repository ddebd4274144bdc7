"""Rule-based triage classification for inbound messages."""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Sequence

from inbox_steward.core.models import Classification, EmailBody, InboundMessage

BulkSignal = Callable[[InboundMessage], bool]

DEFAULT_PROMOTIONAL_MARKERS: tuple[str, ...] = (
    "% off",
    "newsletter",
    "limited time",
    "discount",
    "promo code",
    "special offer",
    "flash sale",
    "free shipping",
)
_INVISIBLE_HTML = re.compile(
    r"<(style|script|head)\b[^>]*>.*?</\1\s*>|<!--.*?-->", re.IGNORECASE | re.DOTALL
)
_HTML_TAG = re.compile(r"<[^>]*>")
_BULK_PRECEDENCE = frozenset({"bulk", "list", "junk"})
_BULK_SENDER_HINTS: tuple[str, ...] = (
    "newsletter",
    "noreply",
    "no-reply",
    "marketing",
    "promo",
)


def has_list_unsubscribe(message: InboundMessage) -> bool:
    """Return ``True`` when the message advertises a ``List-Unsubscribe`` header."""
    return bool(message.headers.get("List-Unsubscribe", "").strip())


def bulk_precedence(message: InboundMessage) -> bool:
    """Return ``True`` for ``Precedence: bulk``, ``list`` or ``junk``."""
    precedence = message.headers.get("Precedence", "").strip().lower()
    return precedence in _BULK_PRECEDENCE


def bulk_sender(message: InboundMessage) -> bool:
    """Return ``True`` when the sender's local part looks like a mass mailer."""
    local_part = message.sender.rpartition("@")[0].lower()
    return _contains_keyword(_BULK_SENDER_HINTS, local_part)


def promotional_subject(markers: Iterable[str]) -> BulkSignal:
    """Build a signal matching any of ``markers`` in the lower-cased subject."""
    normalized = tuple(marker.lower() for marker in markers if marker)

    def _signal(message: InboundMessage) -> bool:
        return _contains_keyword(normalized, message.subject.lower())

    return _signal


def default_bulk_signals(extra_markers: Iterable[str] = ()) -> tuple[BulkSignal, ...]:
    """Return the stock bulk-mail signals, optionally with extra subject markers."""
    markers = DEFAULT_PROMOTIONAL_MARKERS + tuple(extra_markers)
    return (bulk_precedence, bulk_sender, promotional_subject(markers))


def classify(
    message: InboundMessage,
    keywords: Iterable[str],
    bulk_signals: Sequence[BulkSignal] = (),
) -> Classification:
    """Classify ``message``; importance always wins over marketing detection."""
    if find_keyword(message, keywords) is not None:
        return Classification.IMPORTANT
    if has_list_unsubscribe(message):
        return Classification.MARKETING
    if any(signal(message) for signal in bulk_signals):
        return Classification.MARKETING
    return Classification.NEUTRAL


def find_keyword(message: InboundMessage, keywords: Iterable[str]) -> str | None:
    """Return the first configured keyword present in subject or body."""
    haystack = _build_haystack(message)
    for keyword in keywords:
        normalized = keyword.strip().lower()
        if normalized and normalized in haystack:
            return normalized
    return None


class MessageClassifier:
    """Classifier bound to one run's keyword set and bulk-mail signals."""

    def __init__(
        self,
        keywords: Iterable[str],
        bulk_signals: Sequence[BulkSignal] | None = None,
    ) -> None:
        self._keywords = tuple(keywords)
        self._bulk_signals = (
            tuple(bulk_signals) if bulk_signals is not None else default_bulk_signals()
        )

    @property
    def keywords(self) -> tuple[str, ...]:
        return self._keywords

    def classify(self, message: InboundMessage) -> Classification:
        return classify(message, self._keywords, self._bulk_signals)


def _build_haystack(message: InboundMessage) -> str:
    return f"{message.subject}\n{_resolve_body_text(message.body)}".lower()


def _resolve_body_text(body: EmailBody) -> str:
    if body.text:
        return body.text
    if body.html:
        return _strip_html(body.html)
    return ""


def _strip_html(payload: str) -> str:
    # Style, script and comment contents are not rendered text.
    visible = _INVISIBLE_HTML.sub(" ", payload)
    return _HTML_TAG.sub(" ", visible)


def _contains_keyword(keywords: Iterable[str], haystack: str) -> bool:
    for keyword in keywords:
        if keyword in haystack:
            return True
    return False


__all__ = [
    "BulkSignal",
    "DEFAULT_PROMOTIONAL_MARKERS",
    "MessageClassifier",
    "bulk_precedence",
    "bulk_sender",
    "classify",
    "default_bulk_signals",
    "find_keyword",
    "has_list_unsubscribe",
    "promotional_subject",
]
