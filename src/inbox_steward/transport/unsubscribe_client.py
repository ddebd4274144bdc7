"""HTTP client performing list unsubscribe requests."""

from __future__ import annotations

import logging

import httpx

from ..core.config import EngineSettings
from ..core.interfaces import ActionFailure
from ..core.models import UnsubscribeKind, UnsubscribeTarget

LOGGER = logging.getLogger(__name__)

# RFC 8058 one-click body.
ONE_CLICK_FORM = {"List-Unsubscribe": "One-Click"}


class UnsubscribeError(ActionFailure):
    """Raised when an unsubscribe endpoint cannot be reached or rejects us."""


class HttpUnsubscribeClient:
    """Submit HTTP unsubscribe requests, honouring one-click POST targets."""

    def __init__(
        self, settings: EngineSettings, client: httpx.Client | None = None
    ) -> None:
        """Create the client; ``client`` may be supplied for custom transports."""
        self._client = client or httpx.Client(
            timeout=settings.unsubscribe_timeout_seconds,
            follow_redirects=True,
            headers={"User-Agent": settings.user_agent},
        )

    def __enter__(self) -> HttpUnsubscribeClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def submit_unsubscribe(self, target: UnsubscribeTarget) -> None:
        """Request removal from the list behind an HTTP ``target``."""
        if target.kind is not UnsubscribeKind.HTTP_LINK:
            raise UnsubscribeError(f"Cannot submit {target.kind} target over HTTP")

        try:
            if target.one_click:
                LOGGER.debug("Sending one-click unsubscribe POST to %s", target.target)
                response = self._client.post(target.target, data=ONE_CLICK_FORM)
            else:
                LOGGER.debug("Requesting unsubscribe link %s", target.target)
                response = self._client.get(target.target)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise UnsubscribeError(
                f"Unsubscribe endpoint returned HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise UnsubscribeError(f"Unsubscribe request failed: {exc}") from exc

        LOGGER.info(
            "Unsubscribe request to %s answered with HTTP %s",
            target.target,
            response.status_code,
        )

    def close(self) -> None:
        """Release pooled connections."""
        self._client.close()


__all__ = ["HttpUnsubscribeClient", "UnsubscribeError", "ONE_CLICK_FORM"]
