"""Binds the IMAP, SMTP and HTTP adapters to the engine's collaborator seams."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from ..core.config import AgentRequest, EngineSettings, ImapSettings, SmtpSettings
from ..core.models import InboundMessage, OutgoingMessage, UnsubscribeTarget
from .imap_client import ImapClient
from .smtp_client import SmtpClient
from .unsubscribe_client import HttpUnsubscribeClient

LOGGER = logging.getLogger(__name__)

ImapFactory = Callable[[ImapSettings], ImapClient]
SmtpFactory = Callable[[SmtpSettings], SmtpClient]


class MailGateway:
    """Network-backed implementation of the fetch, send and unsubscribe seams.

    Each outgoing message opens its own SMTP session so concurrent workers
    never share a connection.
    """

    def __init__(
        self,
        settings: EngineSettings,
        *,
        imap_factory: ImapFactory = ImapClient,
        smtp_factory: SmtpFactory = SmtpClient,
        unsubscribe_client: HttpUnsubscribeClient | None = None,
    ) -> None:
        self._imap_factory = imap_factory
        self._smtp_factory = smtp_factory
        self._unsubscribe_client = unsubscribe_client or HttpUnsubscribeClient(settings)

    def __enter__(self) -> MailGateway:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def fetch_unseen(
        self, request: AgentRequest, limit: int
    ) -> Sequence[InboundMessage]:
        LOGGER.info(
            "Fetching up to %s unseen message(s) from %s@%s/%s",
            limit,
            request.imap.user,
            request.imap.host,
            request.imap.mailbox,
        )
        with self._imap_factory(request.imap) as mailbox:
            return mailbox.fetch_unseen(limit)

    def send_message(self, request: AgentRequest, message: OutgoingMessage) -> None:
        with self._smtp_factory(request.smtp) as client:
            client.send(message)

    def submit_unsubscribe(self, target: UnsubscribeTarget) -> None:
        self._unsubscribe_client.submit_unsubscribe(target)

    def close(self) -> None:
        self._unsubscribe_client.close()


__all__ = ["MailGateway"]
