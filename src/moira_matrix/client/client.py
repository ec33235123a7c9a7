from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

import nio

from ..logging import get_logger
from .content_builders import _build_reply_content

logger = get_logger("moira_matrix.client")

RoomMessageCallback = Callable[[str, dict[str, Any]], Awaitable[None]]
InviteCallback = Callable[[str, str], Awaitable[None]]
SyncCallback = Callable[[str], Awaitable[None]]

SYNC_TIMEOUT_MS = 30_000


class MatrixClient:
    """The parts of `nio.AsyncClient` the bot needs.

    Callbacks receive plain values (room id, raw event source, sync token)
    instead of nio objects.
    """

    def __init__(self, nio_client: nio.AsyncClient) -> None:
        self._nio = nio_client

    @classmethod
    def with_access_token(
        cls,
        *,
        homeserver: str,
        user_id: str,
        access_token: str,
        device_id: str | None = None,
    ) -> MatrixClient:
        nio_client = nio.AsyncClient(homeserver, user_id, device_id=device_id)
        nio_client.access_token = access_token
        nio_client.user_id = user_id
        return cls(nio_client)

    @property
    def user_id(self) -> str:
        return self._nio.user_id

    def on_room_message(self, callback: RoomMessageCallback) -> None:
        async def _cb(room: nio.MatrixRoom, event: nio.RoomMessage) -> None:
            await callback(room.room_id, event.source)

        self._nio.add_event_callback(_cb, nio.RoomMessage)

    def on_invite(self, callback: InviteCallback) -> None:
        async def _cb(room: nio.MatrixRoom, event: nio.InviteMemberEvent) -> None:
            if event.membership != "invite" or event.state_key != self.user_id:
                return
            await callback(room.room_id, event.sender)

        self._nio.add_event_callback(_cb, nio.InviteMemberEvent)

    def on_sync(self, callback: SyncCallback) -> None:
        async def _cb(response: nio.SyncResponse) -> None:
            await callback(response.next_batch)

        self._nio.add_response_callback(_cb, nio.SyncResponse)

    async def sync(self, *, since: str | None = None, timeout_ms: int = 0) -> bool:
        response = await self._nio.sync(timeout=timeout_ms, since=since)
        if isinstance(response, nio.ErrorResponse):
            logger.error("matrix.sync_failed", error=str(response))
            return False
        return True

    async def sync_forever(self, *, since: str | None = None) -> None:
        await self._nio.sync_forever(timeout=SYNC_TIMEOUT_MS, since=since)

    async def join(self, room_id: str) -> bool:
        response = await self._nio.join(room_id)
        if isinstance(response, nio.ErrorResponse):
            logger.warning("matrix.join_failed", room_id=room_id, error=str(response))
            return False
        return True

    async def reply_notice(self, room_id: str, event_id: str, text: str) -> str | None:
        """Send `text` as an m.notice replying to `event_id`.

        Returns the new event id, or None if the homeserver rejected it.
        """
        response = await self._nio.room_send(
            room_id,
            "m.room.message",
            _build_reply_content(text, event_id),
        )
        if isinstance(response, nio.ErrorResponse):
            logger.warning(
                "matrix.send_failed",
                room_id=room_id,
                reply_to=event_id,
                error=str(response),
            )
            return None
        return response.event_id

    async def close(self) -> None:
        await self._nio.close()
