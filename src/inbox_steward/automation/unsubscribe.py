"""Resolution of machine-actionable unsubscribe targets from list headers.

``List-Unsubscribe`` (RFC 2369) carries one or more angle-bracketed URIs
separated by commas. HTTP targets are preferred over ``mailto`` targets, and
an accompanying ``List-Unsubscribe-Post`` header (RFC 8058) marks the HTTP
target as a one-click POST endpoint.
"""

from __future__ import annotations

import logging
import re
from urllib.parse import parse_qs, unquote, urlsplit

from inbox_steward.core.models import (
    InboundMessage,
    OutgoingMessage,
    UnsubscribeKind,
    UnsubscribeTarget,
)

LOGGER = logging.getLogger(__name__)

_TARGET_PATTERN = re.compile(r"<([^<>]*)>")
_HTTP_SCHEMES = frozenset({"http", "https"})

DEFAULT_UNSUBSCRIBE_SUBJECT = "unsubscribe"
DEFAULT_UNSUBSCRIBE_BODY = "Please remove this address from your mailing list."


def parse_list_unsubscribe(header_value: str) -> list[str]:
    """Return the URIs listed in a ``List-Unsubscribe`` value, in order."""
    candidates: list[str] = []
    for raw in _TARGET_PATTERN.findall(header_value):
        # Whitespace inside the brackets is not significant.
        candidate = "".join(raw.split())
        if candidate:
            candidates.append(candidate)
    return candidates


def resolve_unsubscribe_target(message: InboundMessage) -> UnsubscribeTarget | None:
    """Return the preferred unsubscribe target for ``message``, if any."""
    header_value = message.headers.get("List-Unsubscribe")
    if not header_value:
        return None

    http_target: str | None = None
    mailto_target: str | None = None
    for candidate in parse_list_unsubscribe(header_value):
        scheme = _scheme(candidate)
        if scheme in _HTTP_SCHEMES and http_target is None:
            if _is_valid_http(candidate):
                http_target = candidate
        elif scheme == "mailto" and mailto_target is None:
            if _is_valid_mailto(candidate):
                mailto_target = candidate

    if http_target is not None:
        one_click = bool(message.headers.get("List-Unsubscribe-Post", "").strip())
        return UnsubscribeTarget(
            kind=UnsubscribeKind.HTTP_LINK, target=http_target, one_click=one_click
        )
    if mailto_target is not None:
        return UnsubscribeTarget(kind=UnsubscribeKind.MAILTO, target=mailto_target)

    LOGGER.debug(
        "Message %s has an unusable List-Unsubscribe header: %r",
        message.id,
        header_value,
    )
    return None


def build_unsubscribe_mail(target: UnsubscribeTarget) -> OutgoingMessage:
    """Compose the mail requested by a ``mailto`` unsubscribe target.

    Raises:
        ValueError: If the target is not a usable ``mailto`` URI
    """
    if target.kind is not UnsubscribeKind.MAILTO:
        raise ValueError(f"Expected a mailto target, got {target.kind}")
    parts = urlsplit(target.target)
    address = unquote(parts.path).strip()
    if parts.scheme.lower() != "mailto" or "@" not in address:
        raise ValueError(f"Malformed mailto target: {target.target}")

    params = {key.lower(): values for key, values in parse_qs(parts.query).items()}
    subject = _first(params.get("subject")) or DEFAULT_UNSUBSCRIBE_SUBJECT
    body = _first(params.get("body")) or DEFAULT_UNSUBSCRIBE_BODY
    return OutgoingMessage(to=address, subject=subject, body=body)


def _first(values: list[str] | None) -> str | None:
    if not values:
        return None
    return values[0].strip() or None


def _scheme(candidate: str) -> str:
    try:
        return urlsplit(candidate).scheme.lower()
    except ValueError:
        return ""


def _is_valid_http(candidate: str) -> bool:
    try:
        parts = urlsplit(candidate)
        return bool(parts.netloc) and parts.hostname is not None
    except ValueError:
        return False


def _is_valid_mailto(candidate: str) -> bool:
    address = unquote(urlsplit(candidate).path)
    local, _, domain = address.partition("@")
    return bool(local) and bool(domain)


__all__ = [
    "build_unsubscribe_mail",
    "parse_list_unsubscribe",
    "resolve_unsubscribe_target",
]
