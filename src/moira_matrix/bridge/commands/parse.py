"""Command parsing utilities."""

from __future__ import annotations

COMMAND_PREFIX = "!"

# Checked in this order; the first prefix the body starts with wins.
COMMAND_IDS: tuple[str, ...] = ("hello", "myclasses", "myname")


def parse_bang_command(
    text: str, command_ids: tuple[str, ...] = COMMAND_IDS
) -> tuple[str | None, str]:
    """Match a `!command` at the very start of `text`.

    Matching is a plain prefix test, so `!helloworld` is `hello` with args
    `world`. Leading whitespace is not skipped.

    Returns:
        (command_id, args_text), with command_id None when nothing matches.
    """
    for command_id in command_ids:
        prefix = f"{COMMAND_PREFIX}{command_id}"
        if text.startswith(prefix):
            return command_id, text[len(prefix) :].strip()
    return None, text
