"""Transport-level types for the Matrix side of the bot."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class MatrixIncomingMessage:
    room_id: str
    event_id: str
    sender: str
    msgtype: str | None
    body: str


def parse_room_message(
    room_id: str, source: dict[str, Any]
) -> MatrixIncomingMessage | None:
    """Build an incoming message from a raw `m.room.message` event source.

    Returns None for events without a string body (redactions, malformed
    content).
    """
    content = source.get("content")
    if not isinstance(content, dict):
        return None
    body = content.get("body")
    if not isinstance(body, str):
        return None
    msgtype = content.get("msgtype")
    return MatrixIncomingMessage(
        room_id=room_id,
        event_id=str(source.get("event_id") or ""),
        sender=str(source.get("sender") or ""),
        msgtype=msgtype if isinstance(msgtype, str) else None,
        body=body,
    )
