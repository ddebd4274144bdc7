"""IMAP transport adapter providing access to unseen messages."""

from __future__ import annotations

import imaplib
import logging
from types import TracebackType

from ..core.config import ImapSettings
from ..core.datetime_utils import utc_now
from ..core.models import InboundMessage
from ..ingestion.parser import EmailParser

LOGGER = logging.getLogger(__name__)


class ImapError(RuntimeError):
    """Wrap low level IMAP errors with additional context."""


class ImapClient:
    """Thin wrapper around ``imaplib`` offering typed fetch helpers."""

    def __init__(self, settings: ImapSettings, parser: EmailParser | None = None) -> None:
        """Initialise the client with connection settings."""
        self._settings = settings
        self._parser = parser or EmailParser()
        self._connection: imaplib.IMAP4 | imaplib.IMAP4_SSL | None = None

    @property
    def mailbox(self) -> str:
        """Folder inspected by this client."""
        return self._settings.mailbox

    # Context manager helpers -------------------------------------------------
    def __enter__(self) -> ImapClient:
        """Connect on entering a context manager scope."""
        self.connect()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Ensure resources are released on context exit."""
        self.close()

    # Public API ---------------------------------------------------------------
    def connect(self) -> None:
        """Establish IMAP connection and select the configured mailbox read-only."""
        if self._connection is not None:
            return

        settings = self._settings
        try:
            if settings.secure:
                LOGGER.debug(
                    "Connecting to IMAP host %s:%s via SSL", settings.host, settings.port
                )
                connection: imaplib.IMAP4 | imaplib.IMAP4_SSL = imaplib.IMAP4_SSL(
                    settings.host, settings.port
                )
            else:
                LOGGER.debug(
                    "Connecting to IMAP host %s:%s without SSL",
                    settings.host,
                    settings.port,
                )
                connection = imaplib.IMAP4(settings.host, settings.port)
        except (imaplib.IMAP4.error, OSError) as exc:
            raise ImapError(
                f"Network error reaching {settings.host}:{settings.port}: {exc}"
            ) from exc

        try:
            LOGGER.debug("Authenticating as %s", settings.user)
            connection.login(settings.user, settings.password)
            status, _ = connection.select(_quote_mailbox(self.mailbox), readonly=True)
            if status != "OK":
                raise ImapError(f"Unable to select mailbox '{self.mailbox}'")
        except ImapError:
            _abandon(connection)
            raise
        except imaplib.IMAP4.error as exc:
            _abandon(connection)
            raise ImapError(f"Failed to connect to IMAP server: {exc}") from exc
        except OSError as exc:
            _abandon(connection)
            raise ImapError(
                f"Network error talking to {settings.host}:{settings.port}: {exc}"
            ) from exc
        self._connection = connection

    def fetch_unseen(self, limit: int) -> list[InboundMessage]:
        """Return up to ``limit`` of the newest unseen messages, oldest first.

        Bodies are fetched with ``BODY.PEEK[]`` so the ``\\Seen`` flag is left
        untouched.
        """
        if limit <= 0:
            return []
        connection = self._require_connection()
        status, data = connection.uid("SEARCH", None, "UNSEEN")  # type: ignore[arg-type]
        if status != "OK":
            raise ImapError("Failed to search for unseen messages")

        raw_ids = data[0].split() if data and data[0] else []
        if not raw_ids:
            LOGGER.debug("No unseen messages in %s", self.mailbox)
            return []

        selected = sorted(raw_ids, key=int)[-limit:]
        LOGGER.debug(
            "Found %s unseen message(s), fetching %s", len(raw_ids), len(selected)
        )
        messages: list[InboundMessage] = []
        for uid_bytes in selected:
            uid_str = uid_bytes.decode()
            status_fetch, fetch_data = connection.uid("FETCH", uid_str, "(BODY.PEEK[])")
            if status_fetch != "OK":
                raise ImapError(f"Failed to fetch message UID {uid_str}")
            payload = _extract_payload(fetch_data)
            if payload is None:
                LOGGER.warning("No message payload returned for UID %s", uid_str)
                continue
            messages.append(
                self._parser.parse(uid_str, payload, fetched_at=utc_now())
            )
        return messages

    def close(self) -> None:
        """Terminate the IMAP session cleanly."""
        if self._connection is None:
            return
        try:
            LOGGER.debug("Closing IMAP connection")
            self._connection.close()
        except imaplib.IMAP4.error:  # pragma: no cover - depends on server state
            LOGGER.debug("IMAP close raised; continuing with logout")
        finally:
            try:
                self._connection.logout()
            except (imaplib.IMAP4.error, OSError):  # pragma: no cover
                LOGGER.debug("IMAP logout raised; suppressing during shutdown")
            self._connection = None

    # Internal helpers ---------------------------------------------------------
    def _require_connection(self) -> imaplib.IMAP4 | imaplib.IMAP4_SSL:
        if self._connection is None:
            raise ImapError("IMAP connection has not been established")
        return self._connection


def _abandon(connection: imaplib.IMAP4 | imaplib.IMAP4_SSL) -> None:
    """Drop a half-open session after a failed login or select."""
    try:
        connection.logout()
    except (imaplib.IMAP4.error, OSError):
        try:
            connection.shutdown()
        except OSError:
            LOGGER.debug("IMAP shutdown raised; socket already gone")


def _quote_mailbox(name: str) -> str:
    if name.startswith('"') or " " not in name:
        return name
    return f'"{name}"'


def _extract_payload(fetch_data: list[tuple[bytes, bytes] | bytes]) -> bytes | None:
    """Extract the message literal from ``imaplib`` response chunks."""
    for entry in fetch_data:
        if isinstance(entry, tuple) and len(entry) == 2:
            return entry[1]
    return None


__all__ = [
    "ImapClient",
    "ImapError",
]
