"""Exception types raised by moira_matrix."""

from __future__ import annotations


class MoiraMatrixError(Exception):
    pass


class ConfigError(MoiraMatrixError):
    """Missing or invalid configuration. Fatal at startup."""


class NoAPIResult(MoiraMatrixError):
    """A Moira call came back with no response at all.

    An empty result set is not an error; this is only raised when the
    response itself is absent.
    """


class MalformedUserId(MoiraMatrixError, ValueError):
    """A Matrix user id that is not of the form `@localpart:server`."""
