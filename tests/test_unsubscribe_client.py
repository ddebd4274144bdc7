"""Tests for HTTP unsubscribe submission."""

from __future__ import annotations

from urllib.parse import parse_qs

import httpx
import pytest

from inbox_steward.core.config import EngineSettings
from inbox_steward.core.models import UnsubscribeKind, UnsubscribeTarget
from inbox_steward.transport import HttpUnsubscribeClient, UnsubscribeError


def _client(handler) -> HttpUnsubscribeClient:
    return HttpUnsubscribeClient(
        EngineSettings(), client=httpx.Client(transport=httpx.MockTransport(handler))
    )


def test_one_click_target_is_posted() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200)

    target = UnsubscribeTarget(
        kind=UnsubscribeKind.HTTP_LINK, target="https://list.example/u?id=1", one_click=True
    )

    with _client(handler) as client:
        client.submit_unsubscribe(target)

    assert len(seen) == 1
    request = seen[0]
    assert request.method == "POST"
    assert str(request.url) == "https://list.example/u?id=1"
    assert parse_qs(request.content.decode()) == {"List-Unsubscribe": ["One-Click"]}


def test_plain_link_is_requested_with_get() -> None:
    methods: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        methods.append(request.method)
        return httpx.Response(204)

    with _client(handler) as client:
        client.submit_unsubscribe(
            UnsubscribeTarget(kind=UnsubscribeKind.HTTP_LINK, target="https://x.example/u")
        )

    assert methods == ["GET"]


def test_error_status_raises() -> None:
    with _client(lambda request: httpx.Response(500)) as client:
        with pytest.raises(UnsubscribeError, match="HTTP 500"):
            client.submit_unsubscribe(
                UnsubscribeTarget(
                    kind=UnsubscribeKind.HTTP_LINK, target="https://x.example/u"
                )
            )


def test_transport_error_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with _client(handler) as client:
        with pytest.raises(UnsubscribeError, match="connection refused"):
            client.submit_unsubscribe(
                UnsubscribeTarget(
                    kind=UnsubscribeKind.HTTP_LINK, target="https://x.example/u"
                )
            )


def test_mailto_target_is_rejected() -> None:
    with _client(lambda request: httpx.Response(200)) as client:
        with pytest.raises(UnsubscribeError):
            client.submit_unsubscribe(
                UnsubscribeTarget(
                    kind=UnsubscribeKind.MAILTO, target="mailto:leave@list.example"
                )
            )
