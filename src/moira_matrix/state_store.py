"""Small versioned JSON state file with reload-on-change."""

from __future__ import annotations

import json
import os
from collections.abc import Callable
from dataclasses import asdict, fields
from pathlib import Path
from typing import Any, Generic, TypeVar

import anyio

from .logging import get_logger

logger = get_logger("moira_matrix.state_store")

T = TypeVar("T")


class JsonStateStore(Generic[T]):
    """Persist a dataclass as JSON.

    Subclasses hold `self._lock` while touching `self._state`, call
    `_reload_locked_if_needed()` before reading and `_save_locked()` after
    writing.
    """

    def __init__(
        self,
        path: Path,
        *,
        version: int,
        state_type: type[T],
        state_factory: Callable[[], T],
        log_prefix: str,
    ) -> None:
        self._path = path
        self._version = version
        self._state_type = state_type
        self._state_factory = state_factory
        self._log_prefix = log_prefix
        self._lock = anyio.Lock()
        self._loaded = False
        self._mtime_ns: int | None = None
        self._state: T = state_factory()

    @property
    def path(self) -> Path:
        return self._path

    def _stat_mtime_ns(self) -> int | None:
        try:
            return self._path.stat().st_mtime_ns
        except FileNotFoundError:
            return None

    def _reload_locked_if_needed(self) -> None:
        mtime_ns = self._stat_mtime_ns()
        if self._loaded and mtime_ns == self._mtime_ns:
            return
        self._loaded = True
        self._mtime_ns = mtime_ns
        if mtime_ns is None:
            self._state = self._state_factory()
            return
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning(
                f"{self._log_prefix}.load_failed", path=str(self._path), error=str(exc)
            )
            self._state = self._state_factory()
            return
        if not isinstance(data, dict) or data.get("version") != self._version:
            logger.warning(
                f"{self._log_prefix}.version_mismatch",
                path=str(self._path),
                expected=self._version,
            )
            self._state = self._state_factory()
            return
        known = {f.name for f in fields(self._state_type)}  # type: ignore[arg-type]
        values: dict[str, Any] = {k: v for k, v in data.items() if k in known}
        self._state = self._state_type(**values)

    def _save_locked(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(asdict(self._state), indent=2, sort_keys=True)  # type: ignore[call-overload]
        tmp_path = self._path.with_name(f"{self._path.name}.tmp")
        tmp_path.write_text(payload, encoding="utf-8")
        os.replace(tmp_path, self._path)
        self._mtime_ns = self._stat_mtime_ns()
