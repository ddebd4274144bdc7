"""FastAPI application exposing the automation engine over HTTP."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from fastapi import FastAPI, Request, status as http_status
from fastapi.responses import JSONResponse

from inbox_steward.automation import build_automation
from inbox_steward.core import (
    AgentRequest,
    AppSettings,
    ConfigurationError,
    EngineSettings,
    FetchFailure,
    load_app_settings,
    parse_request,
    summary_to_payload,
)
from inbox_steward.core.models import RunSummary
from inbox_steward.transport import MailGateway

LOGGER = logging.getLogger(__name__)

GatewayFactory = Callable[[EngineSettings], Any]


def create_app(
    settings: AppSettings | None = None,
    gateway_factory: GatewayFactory = MailGateway,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    app_settings = settings or load_app_settings()
    engine_settings = app_settings.engine
    app = FastAPI(title="Inbox Steward")

    def _run(agent_request: AgentRequest) -> RunSummary:
        with gateway_factory(engine_settings) as gateway:
            return build_automation(gateway, engine_settings).run(agent_request)

    @app.get("/api/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/agent/run")
    async def run_agent(request: Request) -> JSONResponse:
        try:
            payload = await request.json()
        except ValueError:
            return _error_response(
                http_status.HTTP_400_BAD_REQUEST, "Request body must be valid JSON"
            )
        if not isinstance(payload, dict):
            return _error_response(
                http_status.HTTP_400_BAD_REQUEST, "Request body must be a JSON object"
            )

        try:
            agent_request = parse_request(payload)
        except ConfigurationError as exc:
            return _error_response(
                http_status.HTTP_400_BAD_REQUEST, str(exc), errors=exc.errors
            )

        try:
            summary = await asyncio.to_thread(_run, agent_request)
        except FetchFailure as exc:
            LOGGER.error("Agent automation error: %s", exc)
            return _error_response(http_status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))
        except Exception as exc:  # noqa: BLE001  # pylint: disable=broad-exception-caught
            LOGGER.exception("Unexpected agent automation error: %s", exc)
            return _error_response(
                http_status.HTTP_500_INTERNAL_SERVER_ERROR,
                str(exc) or "Unexpected server error",
            )

        return JSONResponse({"summary": summary_to_payload(summary)})

    return app


def _error_response(
    status_code: int, message: str, *, errors: list[Any] | None = None
) -> JSONResponse:
    content: dict[str, Any] = {"message": message}
    if errors is not None:
        content["errors"] = errors
    return JSONResponse(content, status_code=status_code)


__all__ = ["create_app"]
