"""SMTP client for sending acknowledgements and unsubscribe mails."""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from email.utils import formataddr, make_msgid

from ..core.config import SmtpSettings
from ..core.interfaces import ActionFailure
from ..core.models import OutgoingMessage

LOGGER = logging.getLogger(__name__)

SMTP_TIMEOUT_SECONDS = 30

# Most specific first; the first matching class labels the failure.
_FAILURE_LABELS: tuple[tuple[type[BaseException], str], ...] = (
    (smtplib.SMTPAuthenticationError, "SMTP authentication failed"),
    (smtplib.SMTPConnectError, "SMTP server refused the connection"),
    (smtplib.SMTPRecipientsRefused, "All recipients refused"),
    (smtplib.SMTPSenderRefused, "Sender refused"),
    (smtplib.SMTPDataError, "SMTP data error"),
    (smtplib.SMTPException, "SMTP error"),
    (OSError, "Network error"),
)


class SmtpError(ActionFailure):
    """Raised when an SMTP session cannot be opened or a message is rejected."""


class SmtpClient:
    """One SMTP session bound to the identity of a run request.

    ``secure`` selects implicit TLS; otherwise STARTTLS is negotiated when the
    server offers it. Use as a context manager:

        >>> with SmtpClient(request.smtp) as client:
        ...     client.send(OutgoingMessage(to="user@example.com", ...))
    """

    def __init__(self, settings: SmtpSettings) -> None:
        self._settings = settings
        self._connection: smtplib.SMTP | None = None

    def __enter__(self) -> SmtpClient:
        self.connect()
        return self

    def __exit__(self, *args: object) -> None:
        self.disconnect()

    @property
    def connected(self) -> bool:
        """Whether a session is currently open."""
        return self._connection is not None

    def connect(self) -> None:
        """Open the session and log in when credentials are configured.

        Raises:
            SmtpError: If the server cannot be reached or rejects the login
        """
        settings = self._settings
        LOGGER.debug("Opening SMTP session to %s:%d", settings.host, settings.port)
        try:
            connection = self._open()
            if settings.user and settings.password:
                LOGGER.debug("Logging in to SMTP as %s", settings.user)
                connection.login(settings.user, settings.password)
        except (smtplib.SMTPException, OSError) as exc:
            raise _wrap(exc, f"connecting to {settings.host}") from exc
        self._connection = connection

    def disconnect(self) -> None:
        """Close the session, ignoring errors raised while saying goodbye."""
        connection, self._connection = self._connection, None
        if connection is None:
            return
        try:
            connection.quit()
        except (smtplib.SMTPException, OSError) as exc:
            LOGGER.debug("Ignoring error on SMTP QUIT: %s", exc)

    def send(self, message: OutgoingMessage) -> None:
        """Deliver ``message``; any rejected recipient is an error."""
        if self._connection is None:
            raise SmtpError("Not connected to SMTP server")

        mime_message = self.build_mime_message(message)
        try:
            refused = self._connection.send_message(mime_message)
        except (smtplib.SMTPException, OSError) as exc:
            raise _wrap(exc, f"sending to {message.to}") from exc
        if refused:
            raise SmtpError(f"Some recipients were refused: {refused}")
        LOGGER.debug("Delivered %r to %s", message.subject, message.to)

    def build_mime_message(self, message: OutgoingMessage) -> EmailMessage:
        """Render ``message`` as MIME using the configured sender identity."""
        settings = self._settings
        address = settings.sender_address
        mime = EmailMessage()
        mime["From"] = (
            formataddr((settings.from_name, address)) if settings.from_name else address
        )
        mime["To"] = message.to
        mime["Subject"] = message.subject
        mime["Message-ID"] = make_msgid(domain=address.rpartition("@")[2] or None)
        if message.in_reply_to:
            mime["In-Reply-To"] = message.in_reply_to
        if message.references:
            mime["References"] = message.references
        mime.set_content(message.body, charset="utf-8")
        return mime

    def _open(self) -> smtplib.SMTP:
        settings = self._settings
        if settings.secure:
            return smtplib.SMTP_SSL(
                settings.host, settings.port, timeout=SMTP_TIMEOUT_SECONDS
            )
        connection = smtplib.SMTP(
            settings.host, settings.port, timeout=SMTP_TIMEOUT_SECONDS
        )
        connection.ehlo()
        if connection.has_extn("starttls"):
            LOGGER.debug("Upgrading SMTP session with STARTTLS")
            connection.starttls()
            connection.ehlo()
        return connection


def _wrap(exc: BaseException, context: str) -> SmtpError:
    label = next(label for kind, label in _FAILURE_LABELS if isinstance(exc, kind))
    LOGGER.warning("%s while %s: %s", label, context, exc)
    return SmtpError(f"{label}: {exc}")


__all__ = ["SmtpClient", "SmtpError"]
