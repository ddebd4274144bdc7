"""Utilities for parsing raw RFC822 messages into inbound message models."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from email import policy
from email.message import EmailMessage
from email.parser import BytesParser
from email.utils import getaddresses, parsedate_to_datetime

from ..core.datetime_utils import ensure_utc, utc_now
from ..core.models import EmailBody, HeaderMap, InboundMessage


class EmailParser:
    """Convert raw email payloads into :class:`InboundMessage` records."""

    def __init__(self) -> None:
        """Prepare internal parser instance."""
        self._parser = BytesParser(policy=policy.default)

    def parse(
        self, uid: str, payload: bytes, *, fetched_at: datetime | None = None
    ) -> InboundMessage:
        """Parse raw RFC822 bytes into an :class:`InboundMessage`."""
        message = self._parser.parsebytes(payload)
        sender_name, sender = _take_first_address(_header(message, "From"))
        received_at = _try_parse_datetime(_header(message, "Date"))
        if received_at is None:
            received_at = fetched_at or utc_now()

        body_text, body_html = _extract_bodies(message)

        return InboundMessage(
            id=uid,
            sender=sender,
            sender_name=sender_name,
            subject=_header(message, "Subject") or "",
            body=EmailBody(text=body_text, html=body_html),
            headers=HeaderMap(_collect_headers(message)),
            received_at=ensure_utc(received_at),
            message_id=_header(message, "Message-ID"),
        )


def _header(message: EmailMessage, name: str) -> str | None:
    try:
        value = message.get(name)
    except (IndexError, ValueError):
        # policy.default raises while parsing some malformed structured headers
        return None
    if value is None:
        return None
    return str(value).strip() or None


def _collect_headers(message: EmailMessage) -> Iterable[tuple[str, str]]:
    for name in message.keys():
        value = _header(message, name)
        if value is not None:
            yield name, value


def _take_first_address(header_value: str | None) -> tuple[str | None, str]:
    if header_value is None:
        return None, ""
    for display_name, email_address in getaddresses([header_value]):
        if email_address:
            return display_name or None, email_address
    return None, header_value


def _collapse_chunks(chunks: Iterable[str], separator: str) -> str | None:
    filtered_chunks = [chunk for chunk in chunks if chunk]
    if not filtered_chunks:
        return None
    return separator.join(filtered_chunks)


def _extract_bodies(message: EmailMessage) -> tuple[str | None, str | None]:
    plain_chunks: list[str] = []
    html_chunks: list[str] = []

    for part in message.walk():
        if part.is_multipart():
            continue
        if part.get_content_disposition() == "attachment":
            continue
        try:
            content_obj = part.get_content()
        except (LookupError, ValueError):
            continue
        if not isinstance(content_obj, str):
            continue
        content = content_obj.strip()
        content_type = part.get_content_type()
        if content_type == "text/plain":
            plain_chunks.append(content)
        elif content_type == "text/html":
            html_chunks.append(content)

    text = _collapse_chunks(plain_chunks, "\n\n")
    html = _collapse_chunks(html_chunks, "\n")
    return text, html


def _try_parse_datetime(header_value: str | None) -> datetime | None:
    if header_value is None:
        return None
    try:
        return parsedate_to_datetime(header_value)
    except (TypeError, ValueError):
        return None


__all__ = ["EmailParser"]
