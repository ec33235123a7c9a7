"""Mapping between Matrix user ids and Moira usernames."""

from __future__ import annotations

import re

from .errors import MalformedUserId

_USER_ID_RE = re.compile(r"@([^:]+):(.+)")


def extract_localpart(user_id: str) -> str:
    """Return the localpart of a Matrix user id.

    `@jdoe:matrix.example.org` -> `jdoe`. On the MIT homeserver the localpart
    is the user's kerb.

    Raises:
        MalformedUserId: if `user_id` is not `@localpart:server`.
    """
    match = _USER_ID_RE.fullmatch(user_id)
    if match is None:
        raise MalformedUserId(f"not a Matrix user id: {user_id!r}")
    return match.group(1)
