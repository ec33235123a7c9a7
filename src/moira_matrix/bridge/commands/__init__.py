"""Command handling for the Moira bot.

This module provides command parsing and the built-in command handlers.
"""

from __future__ import annotations

from .builtin import BUILTIN_COMMAND_IDS, handle_builtin_command
from .parse import COMMAND_IDS, parse_bang_command

__all__ = [
    "BUILTIN_COMMAND_IDS",
    "COMMAND_IDS",
    "handle_builtin_command",
    "parse_bang_command",
]
