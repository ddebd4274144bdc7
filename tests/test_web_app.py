"""Integration tests for the FastAPI web application."""

from __future__ import annotations

from fastapi.testclient import TestClient

from helpers import StubGateway, build_message
from inbox_steward.core.config import AppSettings
from inbox_steward.web import create_app

REQUEST_BODY = {
    "imap": {"host": "imap.example.com", "user": "me@example.com", "password": "pw"},
    "smtp": {"host": "smtp.example.com", "fromAddress": "me@example.com"},
    "agent": {"importantKeywords": ["urgent"], "unsubscribeMode": "unsubscribe"},
    "maxEmails": 10,
}


def _client(gateway: StubGateway) -> TestClient:
    app = create_app(AppSettings(), gateway_factory=lambda settings: gateway)
    return TestClient(app)


def test_health_endpoint() -> None:
    response = _client(StubGateway()).get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_run_returns_summary() -> None:
    gateway = StubGateway(
        [
            build_message(id="1", subject="urgent: contract"),
            build_message(
                id="2",
                subject="Weekly digest",
                sender="news@shop.example",
                headers={"List-Unsubscribe": "<https://shop.example/u>"},
            ),
        ]
    )

    response = _client(gateway).post("/api/agent/run", json=REQUEST_BODY)

    assert response.status_code == 200
    summary = response.json()["summary"]
    assert summary["totalFetched"] == 2
    assert summary["repliesSent"] == 1
    assert summary["unsubscribed"] == 1
    assert summary["archived"] == summary["skipped"] == summary["errors"] == 0
    assert summary["startedAt"].endswith("Z")
    assert [action["action"] for action in summary["actions"]] == [
        "replied",
        "unsubscribed",
    ]
    first = summary["actions"][0]
    assert set(first) == {"id", "subject", "from", "timestamp", "action", "detail"}
    assert first["from"] == "alice@example.com"
    assert first["timestamp"] == "2025-03-04T09:30:00.000Z"
    assert gateway.fetch_calls == [10]
    assert gateway.closed


def test_invalid_request_returns_400() -> None:
    body = {**REQUEST_BODY, "imap": {"user": "me", "password": "pw"}}

    response = _client(StubGateway()).post("/api/agent/run", json=body)

    assert response.status_code == 400
    payload = response.json()
    assert payload["message"] == "Validation failed"
    assert ["imap", "host"] in [error["loc"] for error in payload["errors"]]


def test_malformed_json_returns_400() -> None:
    response = _client(StubGateway()).post(
        "/api/agent/run",
        content=b"{not json",
        headers={"content-type": "application/json"},
    )

    assert response.status_code == 400
    assert "JSON" in response.json()["message"]


def test_non_object_body_returns_400() -> None:
    response = _client(StubGateway()).post("/api/agent/run", json=["imap"])

    assert response.status_code == 400


def test_fetch_failure_returns_500() -> None:
    gateway = StubGateway(fetch_error=OSError("IMAP login failed"))

    response = _client(gateway).post("/api/agent/run", json=REQUEST_BODY)

    assert response.status_code == 500
    assert "IMAP login failed" in response.json()["message"]


def test_action_failures_still_return_200() -> None:
    gateway = StubGateway(
        [build_message(subject="urgent")], fail_send_to=["alice@example.com"]
    )

    response = _client(gateway).post("/api/agent/run", json=REQUEST_BODY)

    assert response.status_code == 200
    summary = response.json()["summary"]
    assert summary["errors"] == 1
    assert summary["actions"][0]["action"] == "error"
