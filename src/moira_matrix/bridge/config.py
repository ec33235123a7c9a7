from __future__ import annotations

from dataclasses import dataclass

from ..client import MatrixClient
from ..config import CommandSettings
from ..moira import Moira
from ..sync_state import MatrixSyncStore


@dataclass(frozen=True, slots=True)
class MatrixBridgeConfig:
    client: MatrixClient
    moira: Moira
    commands: CommandSettings
    sync_store: MatrixSyncStore | None = None
    autojoin: bool = True
