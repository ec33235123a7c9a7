"""Content builders for Matrix message formatting."""

from __future__ import annotations

from typing import Any


def _build_reply_content(body: str, reply_to_event_id: str) -> dict[str, Any]:
    """Build m.notice content with m.relates_to for replies."""
    return {
        "msgtype": "m.notice",
        "body": body,
        "m.relates_to": {
            "m.in_reply_to": {"event_id": reply_to_event_id},
        },
    }
