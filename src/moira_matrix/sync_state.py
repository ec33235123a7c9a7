"""Persisted Matrix sync position."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .state_store import JsonStateStore

STATE_VERSION = 1


@dataclass
class _SyncState:
    version: int
    next_batch: str | None = None


def _new_state() -> _SyncState:
    return _SyncState(version=STATE_VERSION)


class MatrixSyncStore(JsonStateStore[_SyncState]):
    """Store the `next_batch` token so a restart resumes the sync stream."""

    def __init__(self, path: Path) -> None:
        super().__init__(
            path,
            version=STATE_VERSION,
            state_type=_SyncState,
            state_factory=_new_state,
            log_prefix="matrix.sync_state",
        )

    async def get_next_batch(self) -> str | None:
        async with self._lock:
            self._reload_locked_if_needed()
            token = self._state.next_batch
            if not isinstance(token, str) or not token.strip():
                return None
            return token

    async def set_next_batch(self, token: str | None) -> None:
        token = token.strip() if token else None
        async with self._lock:
            self._reload_locked_if_needed()
            if self._state.next_batch == (token or None):
                return
            self._state.next_batch = token or None
            self._save_locked()
