"""Transport adapters for external mailbox providers."""

from .gateway import MailGateway
from .imap_client import ImapClient, ImapError
from .smtp_client import SmtpClient, SmtpError
from .unsubscribe_client import HttpUnsubscribeClient, UnsubscribeError

__all__ = [
    "HttpUnsubscribeClient",
    "ImapClient",
    "ImapError",
    "MailGateway",
    "SmtpClient",
    "SmtpError",
    "UnsubscribeError",
]
