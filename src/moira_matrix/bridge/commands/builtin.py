"""Built-in bot commands."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ...identity import extract_localpart
from ...types import MatrixIncomingMessage
from .parse import COMMAND_IDS

if TYPE_CHECKING:
    from ..config import MatrixBridgeConfig

BUILTIN_COMMAND_IDS = frozenset(COMMAND_IDS)

HELLO_TEXT = "Hello world!"


async def _reply(
    cfg: MatrixBridgeConfig,
    *,
    room_id: str,
    event_id: str,
    text: str,
) -> None:
    await cfg.client.reply_notice(room_id, event_id, text)


def current_classes(classes: list[str], prefix: str) -> list[str]:
    return [name for name in classes if name.startswith(prefix)]


async def _handle_hello_command(
    cfg: MatrixBridgeConfig, msg: MatrixIncomingMessage
) -> None:
    await _reply(cfg, room_id=msg.room_id, event_id=msg.event_id, text=HELLO_TEXT)


async def _handle_myclasses_command(
    cfg: MatrixBridgeConfig, msg: MatrixIncomingMessage
) -> None:
    kerb = extract_localpart(msg.sender)
    classes = await cfg.moira.get_user_classes(kerb)
    # Narrower than the library's class prefix: only the current term.
    selected = current_classes(classes, cfg.commands.current_class_prefix)
    await _reply(
        cfg,
        room_id=msg.room_id,
        event_id=msg.event_id,
        text="\n".join(selected),
    )


async def _handle_myname_command(
    cfg: MatrixBridgeConfig, msg: MatrixIncomingMessage
) -> None:
    kerb = extract_localpart(msg.sender)
    name = await cfg.moira.get_user_name(kerb)
    await _reply(cfg, room_id=msg.room_id, event_id=msg.event_id, text=name)


async def handle_builtin_command(
    cfg: MatrixBridgeConfig,
    msg: MatrixIncomingMessage,
    *,
    command_id: str,
) -> bool:
    """Handle built-in bot commands.

    Returns False for unknown command ids. Errors from Moira or from a
    malformed sender propagate to the caller.
    """
    if command_id == "hello":
        await _handle_hello_command(cfg, msg)
        return True
    if command_id == "myclasses":
        await _handle_myclasses_command(cfg, msg)
        return True
    if command_id == "myname":
        await _handle_myname_command(cfg, msg)
        return True
    return False
