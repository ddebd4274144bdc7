"""Deterministic acknowledgement replies."""

from __future__ import annotations

import re

from inbox_steward.core.config import SmtpSettings
from inbox_steward.core.models import InboundMessage, OutgoingMessage

ACKNOWLEDGEMENT_TEMPLATE = (
    "Hello {name},\n"
    "\n"
    'Thank you for your email regarding "{subject}". This is a confirmation '
    "that your message has been received and will be reviewed shortly."
)
NO_SUBJECT = "(no subject)"

_REPLY_PREFIX = re.compile(r"^\s*re\s*:", re.IGNORECASE)


def reply_subject(subject: str) -> str:
    """Return ``Re: <subject>`` unless the subject already carries the prefix."""
    stripped = subject.strip()
    if _REPLY_PREFIX.match(stripped):
        return stripped
    return f"Re: {stripped or NO_SUBJECT}"


def greeting_name(message: InboundMessage) -> str:
    """Name used in the greeting: display name, else the sender address."""
    if message.sender_name:
        return message.sender_name.strip()
    return message.sender or "there"


def compose_reply(message: InboundMessage, smtp: SmtpSettings) -> OutgoingMessage:
    """Build the acknowledgement reply for ``message``.

    The signature from ``smtp`` is appended verbatim after a blank line.
    """
    body = ACKNOWLEDGEMENT_TEMPLATE.format(
        name=greeting_name(message),
        subject=message.subject.strip() or NO_SUBJECT,
    )
    if smtp.reply_signature:
        body = f"{body}\n\n{smtp.reply_signature}"

    references = " ".join(
        part
        for part in (message.headers.get("References"), message.message_id)
        if part
    )
    return OutgoingMessage(
        to=message.sender,
        subject=reply_subject(message.subject),
        body=body,
        in_reply_to=message.message_id,
        references=references or None,
    )


__all__ = ["compose_reply", "greeting_name", "reply_subject"]
