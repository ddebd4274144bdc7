"""Command-line entry point for Inbox Steward."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from inbox_steward.automation import build_automation
from inbox_steward.core import (
    AgentRequest,
    AppSettings,
    ConfigurationError,
    FetchFailure,
    configure_logging,
    load_app_settings,
    parse_request,
    summary_to_payload,
)
from inbox_steward.transport import MailGateway

EXIT_OK = 0
EXIT_FETCH_FAILED = 1
EXIT_BAD_CONFIG = 2


def build_parser() -> argparse.ArgumentParser:
    """Create and configure the CLI argument parser."""
    parser = argparse.ArgumentParser(description="Inbox Steward mailbox triage")
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Path to a .env file containing configuration overrides.",
    )
    parser.add_argument(
        "command",
        nargs="?",
        default="info",
        choices=["info", "run", "serve"],
        help="Operation to execute.",
    )
    parser.add_argument(
        "--request",
        dest="request_file",
        type=Path,
        default=None,
        help="JSON file holding the run request (defaults to INBOX_STEWARD_REQUEST__*).",
    )
    parser.add_argument(
        "--max-emails",
        dest="max_emails",
        type=int,
        default=None,
        help="Override maxEmails for this run.",
    )
    return parser


def execute(args: argparse.Namespace, settings: AppSettings) -> int:
    """Execute the requested CLI command and return the exit code."""
    command = args.command
    if command == "info":
        return _print_info(settings)
    if command == "serve":
        return _serve(settings)
    try:
        request = _resolve_request(args, settings)
    except ConfigurationError as exc:
        print(f"Invalid run request: {exc}", file=sys.stderr)
        for error in exc.errors:
            location = ".".join(str(part) for part in error.get("loc", ()))
            print(f"  {location}: {error.get('msg')}", file=sys.stderr)
        return EXIT_BAD_CONFIG
    return _run(settings, request)


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = load_app_settings(env_file=args.env_file)
    configure_logging(settings.logging)
    return execute(args, settings)


def _print_info(settings: AppSettings) -> int:
    print("Inbox Steward is ready.")
    print(f"Workers: {settings.engine.max_workers}")
    deadline = settings.engine.deadline_seconds
    print(f"Deadline: {f'{deadline}s' if deadline else 'none'}")
    request = settings.request
    if request is None:
        print("No default request configured; pass --request FILE to run.")
    else:
        print(f"IMAP: {request.imap.user}@{request.imap.host}/{request.imap.mailbox}")
        print(f"SMTP: {request.smtp.host}:{request.smtp.port}")
        print(f"Unsubscribe mode: {request.agent.unsubscribe_mode}")
        print(f"Max emails: {request.max_emails}")
    return EXIT_OK


def _resolve_request(args: argparse.Namespace, settings: AppSettings) -> AgentRequest:
    if args.request_file is not None:
        try:
            payload = json.loads(args.request_file.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigurationError(f"Cannot read {args.request_file}: {exc}") from exc
        if not isinstance(payload, dict):
            raise ConfigurationError("Request file must contain a JSON object")
        request = parse_request(payload)
    elif settings.request is not None:
        request = settings.request
    else:
        raise ConfigurationError("No run request configured")

    if args.max_emails is not None:
        request = parse_request(
            {**request.model_dump(by_alias=True), "maxEmails": args.max_emails}
        )
    return request


def _run(settings: AppSettings, request: AgentRequest) -> int:
    """Run one triage pass and print the summary as JSON."""
    try:
        with MailGateway(settings.engine) as gateway:
            summary = build_automation(gateway, settings.engine).run(request)
    except FetchFailure as exc:
        print(f"Run failed: {exc}", file=sys.stderr)
        return EXIT_FETCH_FAILED

    print(json.dumps({"summary": summary_to_payload(summary)}, indent=2))
    return EXIT_OK


def _serve(settings: AppSettings) -> int:
    import uvicorn  # pylint: disable=import-outside-toplevel

    from inbox_steward.web import create_app  # pylint: disable=import-outside-toplevel

    uvicorn.run(create_app(settings), host=settings.web.host, port=settings.web.port)
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
