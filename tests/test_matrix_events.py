"""Tests for bridge/events.py - event filtering and dispatch."""

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock

import pytest

from matrix_fixtures import BOT_USER_ID, ROOM_ID, make_event_source
from moira_matrix.bridge.events import handle_invite, handle_room_message, handle_sync
from moira_matrix.config import CommandSettings
from moira_matrix.errors import NoAPIResult
from moira_matrix.sync_state import MatrixSyncStore


class FakeClient:
    def __init__(self) -> None:
        self.user_id = BOT_USER_ID
        self.replies: list[tuple[str, str, str]] = []
        self.joined: list[str] = []

    async def reply_notice(self, room_id: str, event_id: str, text: str) -> str:
        self.replies.append((room_id, event_id, text))
        return "$reply"

    async def join(self, room_id: str) -> bool:
        self.joined.append(room_id)
        return True


def _build_cfg(
    *,
    moira: Any = None,
    reply_on_error: bool = False,
    autojoin: bool = True,
    sync_store: MatrixSyncStore | None = None,
) -> Any:
    return SimpleNamespace(
        client=FakeClient(),
        moira=moira if moira is not None else AsyncMock(),
        commands=CommandSettings(reply_on_error=reply_on_error),
        sync_store=sync_store,
        autojoin=autojoin,
    )


# --- filtering ---


@pytest.mark.anyio
async def test_text_hello_gets_reply() -> None:
    cfg = _build_cfg()

    handled = await handle_room_message(cfg, ROOM_ID, make_event_source(body="!hello"))

    assert handled is True
    assert cfg.client.replies == [(ROOM_ID, "$event:example.org", "Hello world!")]


@pytest.mark.anyio
@pytest.mark.parametrize("msgtype", ["m.notice", "m.emote", "m.image", None])
async def test_non_text_messages_are_ignored(msgtype: str | None) -> None:
    cfg = _build_cfg()

    handled = await handle_room_message(
        cfg, ROOM_ID, make_event_source(body="!hello", msgtype=msgtype)
    )

    assert handled is False
    assert cfg.client.replies == []


@pytest.mark.anyio
async def test_own_messages_are_ignored() -> None:
    cfg = _build_cfg()

    handled = await handle_room_message(
        cfg, ROOM_ID, make_event_source(body="!hello", sender=BOT_USER_ID)
    )

    assert handled is False
    assert cfg.client.replies == []


@pytest.mark.anyio
async def test_redacted_event_without_body_is_ignored() -> None:
    cfg = _build_cfg()
    source = make_event_source()
    source["content"] = {}

    handled = await handle_room_message(cfg, ROOM_ID, source)

    assert handled is False
    assert cfg.client.replies == []


@pytest.mark.anyio
@pytest.mark.parametrize("body", ["hello", "what is !hello", " !hello", "!help", ""])
async def test_unmatched_bodies_produce_nothing(body: str) -> None:
    cfg = _build_cfg()

    handled = await handle_room_message(cfg, ROOM_ID, make_event_source(body=body))

    assert handled is False
    assert cfg.client.replies == []


@pytest.mark.anyio
async def test_unmatched_body_with_malformed_sender_does_not_fail() -> None:
    cfg = _build_cfg()

    handled = await handle_room_message(
        cfg, ROOM_ID, make_event_source(body="just chatting", sender="weird")
    )

    assert handled is False


# --- dispatch ---


@pytest.mark.anyio
async def test_myname_dispatches_with_kerb() -> None:
    moira = AsyncMock()
    moira.get_user_name = AsyncMock(return_value="Jane Q Doe")
    cfg = _build_cfg(moira=moira)

    await handle_room_message(
        cfg, ROOM_ID, make_event_source(body="!myname", sender="@jdoe:mit.edu")
    )

    moira.get_user_name.assert_awaited_once_with("jdoe")
    assert cfg.client.replies[-1][2] == "Jane Q Doe"


@pytest.mark.anyio
async def test_only_one_reply_per_event() -> None:
    cfg = _build_cfg()

    await handle_room_message(
        cfg, ROOM_ID, make_event_source(body="!hello !myname !myclasses")
    )

    assert len(cfg.client.replies) == 1
    assert cfg.client.replies[0][2] == "Hello world!"


# --- failures ---


@pytest.mark.anyio
async def test_failing_command_is_logged_not_raised() -> None:
    moira = AsyncMock()
    moira.get_user_name = AsyncMock(side_effect=NoAPIResult("getUserAttributes"))
    cfg = _build_cfg(moira=moira)

    handled = await handle_room_message(cfg, ROOM_ID, make_event_source(body="!myname"))

    assert handled is True
    assert cfg.client.replies == []


@pytest.mark.anyio
async def test_malformed_sender_silently_fails_command() -> None:
    cfg = _build_cfg()

    handled = await handle_room_message(
        cfg, ROOM_ID, make_event_source(body="!myclasses", sender="jdoe")
    )

    assert handled is True
    assert cfg.client.replies == []
    cfg.moira.get_user_classes.assert_not_awaited()


@pytest.mark.anyio
async def test_reply_on_error_sends_error_text() -> None:
    moira = AsyncMock()
    moira.get_user_name = AsyncMock(
        side_effect=NoAPIResult("getUserAttributes didn't return anything!")
    )
    cfg = _build_cfg(moira=moira, reply_on_error=True)

    await handle_room_message(cfg, ROOM_ID, make_event_source(body="!myname"))

    assert cfg.client.replies == [
        (
            ROOM_ID,
            "$event:example.org",
            "error: getUserAttributes didn't return anything!",
        )
    ]


# --- invites ---


@pytest.mark.anyio
async def test_invite_is_accepted_when_autojoin() -> None:
    cfg = _build_cfg()

    await handle_invite(cfg, "!new:example.org", "@jdoe:example.org")

    assert cfg.client.joined == ["!new:example.org"]


@pytest.mark.anyio
async def test_invite_is_ignored_without_autojoin() -> None:
    cfg = _build_cfg(autojoin=False)

    await handle_invite(cfg, "!new:example.org", "@jdoe:example.org")

    assert cfg.client.joined == []


# --- sync position ---


@pytest.mark.anyio
async def test_sync_token_is_persisted(tmp_path: Path) -> None:
    store = MatrixSyncStore(tmp_path / "storage.json")
    cfg = _build_cfg(sync_store=store)

    await handle_sync(cfg, "s72594_4483_1934")

    assert await store.get_next_batch() == "s72594_4483_1934"


@pytest.mark.anyio
async def test_sync_without_store_is_noop() -> None:
    cfg = _build_cfg()

    await handle_sync(cfg, "s1")


@pytest.mark.anyio
async def test_sync_store_write_failure_is_logged_not_raised(tmp_path: Path) -> None:
    blocker = tmp_path / "notadir"
    blocker.write_text("", encoding="utf-8")
    cfg = _build_cfg(sync_store=MatrixSyncStore(blocker / "storage.json"))

    await handle_sync(cfg, "s1")


# --- failures outside commands ---


@pytest.mark.anyio
async def test_invite_join_exception_is_logged_not_raised() -> None:
    cfg = _build_cfg()
    cfg.client.join = AsyncMock(side_effect=RuntimeError("connection reset"))

    await handle_invite(cfg, "!new:example.org", "@jdoe:example.org")

    cfg.client.join.assert_awaited_once_with("!new:example.org")


@pytest.mark.anyio
async def test_error_reply_failure_is_logged_not_raised() -> None:
    moira = AsyncMock()
    moira.get_user_name = AsyncMock(side_effect=NoAPIResult("getUserAttributes"))
    cfg = _build_cfg(moira=moira, reply_on_error=True)
    cfg.client.reply_notice = AsyncMock(side_effect=RuntimeError("rate limited"))

    handled = await handle_room_message(cfg, ROOM_ID, make_event_source(body="!myname"))

    assert handled is True
    cfg.client.reply_notice.assert_awaited_once()
