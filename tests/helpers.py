"""Builders and stub collaborators shared by the tests."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import UTC, datetime

from inbox_steward.core.config import AgentRequest, parse_request
from inbox_steward.core.interfaces import ActionFailure
from inbox_steward.core.models import (
    EmailBody,
    HeaderMap,
    InboundMessage,
    OutgoingMessage,
    UnsubscribeTarget,
)

RECEIVED_AT = datetime(2025, 3, 4, 9, 30, tzinfo=UTC)


def build_message(
    *,
    id: str = "1",  # pylint: disable=redefined-builtin
    subject: str = "Quick question",
    sender: str = "alice@example.com",
    sender_name: str | None = None,
    text: str | None = "Hi, could you take a look at this?",
    html: str | None = None,
    headers: Mapping[str, str] | None = None,
    message_id: str | None = None,
) -> InboundMessage:
    return InboundMessage(
        id=id,
        sender=sender,
        sender_name=sender_name,
        subject=subject,
        body=EmailBody(text=text, html=html),
        headers=HeaderMap(headers or {}),
        received_at=RECEIVED_AT,
        message_id=message_id,
    )


def build_request(max_emails: int | None = None, **agent: object) -> AgentRequest:
    payload: dict[str, object] = {
        "imap": {"host": "imap.example.com", "user": "me@example.com", "password": "pw"},
        "smtp": {
            "host": "smtp.example.com",
            "user": "me@example.com",
            "password": "pw",
            "fromName": "Me",
            "fromAddress": "me@example.com",
            "replySignature": "Regards,\nMe",
        },
        "agent": {
            "importantKeywords": ["urgent", "deadline"],
            "skipMarketingReplies": True,
            "unsubscribeMode": "unsubscribe",
            "autoAcknowledge": True,
            **agent,
        },
    }
    if max_emails is not None:
        payload["maxEmails"] = max_emails
    return parse_request(payload)


class StubGateway:
    """In-memory gateway recording every outgoing call."""

    def __init__(
        self,
        messages: Sequence[InboundMessage] = (),
        *,
        fail_send_to: Sequence[str] = (),
        fail_unsubscribe: bool = False,
        fetch_error: Exception | None = None,
    ) -> None:
        self.messages = list(messages)
        self.fail_send_to = set(fail_send_to)
        self.fail_unsubscribe = fail_unsubscribe
        self.fetch_error = fetch_error
        self.fetch_calls: list[int] = []
        self.sent: list[OutgoingMessage] = []
        self.unsubscribed: list[UnsubscribeTarget] = []
        self.closed = False

    def __enter__(self) -> StubGateway:
        return self

    def __exit__(self, *args: object) -> None:
        self.closed = True

    def fetch_unseen(
        self, request: AgentRequest, limit: int
    ) -> Sequence[InboundMessage]:
        del request
        self.fetch_calls.append(limit)
        if self.fetch_error is not None:
            raise self.fetch_error
        return self.messages[:limit]

    def send_message(self, request: AgentRequest, message: OutgoingMessage) -> None:
        del request
        if message.to in self.fail_send_to:
            raise ActionFailure(f"Connection reset while sending to {message.to}")
        self.sent.append(message)

    def submit_unsubscribe(self, target: UnsubscribeTarget) -> None:
        if self.fail_unsubscribe:
            raise ActionFailure("Unsubscribe endpoint returned HTTP 503")
        self.unsubscribed.append(target)
