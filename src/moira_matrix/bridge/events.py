"""Matrix event callbacks."""

from __future__ import annotations

from typing import Any

from ..logging import get_logger
from ..types import MatrixIncomingMessage, parse_room_message
from .commands import handle_builtin_command, parse_bang_command
from .config import MatrixBridgeConfig

logger = get_logger("moira_matrix.bridge.events")

TEXT_MSGTYPE = "m.text"


def _should_handle(cfg: MatrixBridgeConfig, msg: MatrixIncomingMessage) -> bool:
    if msg.msgtype != TEXT_MSGTYPE:
        return False
    return msg.sender != cfg.client.user_id


async def handle_room_message(
    cfg: MatrixBridgeConfig, room_id: str, source: dict[str, Any]
) -> bool:
    """Dispatch one room message event.

    Returns True when a command was recognized. A failing command is logged
    and does not reach the sync loop; with `reply_on_error` the error text is
    sent back instead of nothing.
    """
    msg = parse_room_message(room_id, source)
    if msg is None or not _should_handle(cfg, msg):
        return False
    command_id, _ = parse_bang_command(msg.body)
    if command_id is None:
        return False

    logger.info(
        "matrix.command.received",
        room_id=room_id,
        event_id=msg.event_id,
        sender=msg.sender,
        command=command_id,
    )
    try:
        await handle_builtin_command(cfg, msg, command_id=command_id)
    except Exception as exc:
        logger.exception(
            "matrix.command.failed",
            room_id=room_id,
            event_id=msg.event_id,
            command=command_id,
            error=str(exc),
        )
        if cfg.commands.reply_on_error:
            await _reply_error(cfg, room_id, msg.event_id, exc)
    return True


async def _reply_error(
    cfg: MatrixBridgeConfig, room_id: str, event_id: str, exc: Exception
) -> None:
    try:
        await cfg.client.reply_notice(room_id, event_id, f"error: {exc}")
    except Exception as send_exc:
        logger.exception(
            "matrix.command.error_reply_failed",
            room_id=room_id,
            event_id=event_id,
            error=str(send_exc),
        )


async def handle_invite(cfg: MatrixBridgeConfig, room_id: str, inviter: str) -> None:
    if not cfg.autojoin:
        logger.info("matrix.invite.ignored", room_id=room_id, inviter=inviter)
        return
    try:
        joined = await cfg.client.join(room_id)
    except Exception as exc:
        logger.exception(
            "matrix.invite.failed", room_id=room_id, inviter=inviter, error=str(exc)
        )
        return
    logger.info("matrix.invite.join", room_id=room_id, inviter=inviter, ok=joined)


async def handle_sync(cfg: MatrixBridgeConfig, next_batch: str) -> None:
    if cfg.sync_store is None:
        return
    try:
        await cfg.sync_store.set_next_batch(next_batch)
    except Exception as exc:
        logger.exception(
            "matrix.sync_state.save_failed",
            path=str(cfg.sync_store.path),
            error=str(exc),
        )
