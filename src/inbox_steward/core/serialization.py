"""Conversion of run results into the public JSON shape."""

from __future__ import annotations

from typing import Any

from .datetime_utils import serialize_datetime
from .models import ActionRecord, RunSummary


def action_to_payload(record: ActionRecord) -> dict[str, Any]:
    """Return the camelCase representation of one action record."""
    return {
        "id": record.id,
        "subject": record.subject,
        "from": record.sender,
        "timestamp": serialize_datetime(record.timestamp),
        "action": record.action.value,
        "detail": record.detail,
    }


def summary_to_payload(summary: RunSummary) -> dict[str, Any]:
    """Return the camelCase representation of a run summary."""
    return {
        "startedAt": serialize_datetime(summary.started_at),
        "completedAt": serialize_datetime(summary.completed_at),
        "totalFetched": summary.total_fetched,
        "repliesSent": summary.replies_sent,
        "unsubscribed": summary.unsubscribed,
        "archived": summary.archived,
        "skipped": summary.skipped,
        "errors": summary.errors,
        "actions": [action_to_payload(record) for record in summary.actions],
    }


__all__ = ["action_to_payload", "summary_to_payload"]
