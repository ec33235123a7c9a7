"""Bot startup and main loop."""

from __future__ import annotations

from functools import partial

import anyio

from ..client import MatrixClient
from ..config import Settings, resolve_identity
from ..logging import get_logger
from ..moira import Moira
from ..sync_state import MatrixSyncStore
from .config import MatrixBridgeConfig
from .events import handle_invite, handle_room_message, handle_sync

logger = get_logger("moira_matrix.bridge.runtime")


async def build_bridge_config(settings: Settings) -> MatrixBridgeConfig:
    """Authenticate against Moira and the homeserver.

    Any failure here is fatal: bad key/cert, unreachable WSDL, rejected
    access token.
    """
    moira = await Moira.initialize(
        settings.moira.key_file,
        settings.moira.cert_file,
        wsdl_url=settings.moira.wsdl_url,
        class_prefix=settings.moira.class_prefix,
    )
    user_id, device_id = await anyio.to_thread.run_sync(
        resolve_identity, settings.matrix
    )
    client = MatrixClient.with_access_token(
        homeserver=settings.matrix.homeserver,
        user_id=user_id,
        access_token=settings.matrix.access_token,
        device_id=device_id,
    )
    return MatrixBridgeConfig(
        client=client,
        moira=moira,
        commands=settings.commands,
        sync_store=MatrixSyncStore(settings.matrix.storage_path),
        autojoin=settings.matrix.autojoin,
    )


async def _resume_token(cfg: MatrixBridgeConfig) -> str | None:
    if cfg.sync_store is None:
        return None
    return await cfg.sync_store.get_next_batch()


async def _startup_sequence(cfg: MatrixBridgeConfig, since: str | None) -> bool:
    """Prepare the client for the sync loop.

    Without a stored sync token the first sync only establishes a position,
    so old commands in the room history are not answered. Invites pending
    in that sync are still accepted.
    """
    cfg.client.on_sync(partial(handle_sync, cfg))
    cfg.client.on_invite(partial(handle_invite, cfg))
    if since is None:
        if not await cfg.client.sync():
            return False
        logger.info("matrix.sync.backlog_skipped")
    cfg.client.on_room_message(partial(handle_room_message, cfg))
    return True


async def run_bot(cfg: MatrixBridgeConfig) -> int:
    try:
        since = await _resume_token(cfg)
        if not await _startup_sequence(cfg, since):
            logger.error("matrix.bot.startup_failed")
            return 1
        logger.info(
            "matrix.bot.started",
            user_id=cfg.client.user_id,
            resumed=since is not None,
        )
        await cfg.client.sync_forever(since=since)
        return 0
    finally:
        await cfg.client.close()
        await cfg.moira.aclose()
