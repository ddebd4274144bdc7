"""Mapping from classification and policy to one terminal action.

+-------------+--------+-------------+-----------------+---------------+--------------+
| class       | target | mode        | autoAcknowledge | skipMarketing | action       |
+=============+========+=============+=================+===============+==============+
| important   |        |             | true            |               | replied      |
| important   |        |             | false           |               | skipped      |
| marketing   | yes    | unsubscribe |                 |               | unsubscribed |
| marketing   | no     | unsubscribe |                 |               | archived     |
| marketing   |        | archive     |                 |               | archived     |
| neutral     |        |             |                 | true          | skipped      |
| neutral     |        |             |                 | false         | replied      |
+-------------+--------+-------------+-----------------+---------------+--------------+
"""

from __future__ import annotations

from inbox_steward.core.config import AgentSettings, UnsubscribeMode
from inbox_steward.core.models import (
    ActionKind,
    Classification,
    Decision,
    UnsubscribeTarget,
)


def decide(
    classification: Classification,
    target: UnsubscribeTarget | None,
    agent: AgentSettings,
) -> Decision:
    """Return the single action for a message. Marketing mail is never replied to."""
    if classification is Classification.IMPORTANT:
        if agent.auto_acknowledge:
            return Decision(ActionKind.REPLIED, "Important email acknowledged")
        return Decision(
            ActionKind.SKIPPED,
            "Important email left for manual handling (auto-acknowledge disabled)",
        )

    if classification is Classification.MARKETING:
        if agent.unsubscribe_mode is UnsubscribeMode.ARCHIVE:
            return Decision(
                ActionKind.ARCHIVED, "Marketing email archived (archive mode)"
            )
        if target is None:
            return Decision(
                ActionKind.ARCHIVED,
                "Marketing email archived; no usable unsubscribe target",
            )
        return Decision(
            ActionKind.UNSUBSCRIBED, "Marketing email unsubscribed", target=target
        )

    if agent.skip_marketing_replies:
        return Decision(ActionKind.SKIPPED, "No important keywords; reply skipped")
    return Decision(
        ActionKind.REPLIED, "No important keywords; best-effort acknowledgement"
    )


__all__ = ["decide"]
