"""ChatRepository against a real SQLite file."""

from __future__ import annotations

import asyncio
import sqlite3
from unittest.mock import AsyncMock, patch

import pytest

from snapthink.core.models import Message, Session
from snapthink.core.types import Role
from snapthink.storage.chat_repo import ChatRepository
from snapthink.storage.database import Database


@pytest.fixture
async def repo(tmp_path):
    db = Database(str(tmp_path / "nested" / "chats.db"))
    await db.initialize()
    yield ChatRepository(db)
    await db.close()


def _log() -> list[Message]:
    return [
        Message(Role.USER, "Hello", "2025-01-01T10:00:00.000Z"),
        Message(Role.ASSISTANT, "Hi! **How** can I help?\n\n- a\n- b", "2025-01-01T10:00:02.500Z"),
    ]


async def test_empty_database(repo):
    assert await repo.list_chats() == []
    assert await repo.load_chat("chat-1") == []


async def test_save_then_load_round_trip(repo):
    log = _log()
    await repo.save_chat("chat-1", log)
    assert await repo.load_chat("chat-1") == log


async def test_save_overwrites_whole_log(repo):
    log = _log()
    await repo.save_chat("chat-1", log)
    longer = log + [Message(Role.USER, "More", "2025-01-01T10:01:00.000Z")]
    await repo.save_chat("chat-1", longer)
    assert await repo.load_chat("chat-1") == longer

    await repo.save_chat("chat-1", log[:1])
    assert await repo.load_chat("chat-1") == log[:1]


async def test_save_creates_chat_with_default_name(repo):
    await repo.save_chat("chat-1", _log())
    assert await repo.list_chats() == [Session("chat-1", "New Chat")]


async def test_rename_creates_then_updates(repo):
    await repo.rename_chat("chat-1", "New Chat")
    await repo.rename_chat("chat-2", "New Chat")
    await repo.rename_chat("chat-1", "Trip planning")

    assert await repo.list_chats() == [
        Session("chat-1", "Trip planning"),
        Session("chat-2", "New Chat"),
    ]


async def test_save_keeps_existing_name(repo):
    await repo.rename_chat("chat-1", "Named")
    await repo.save_chat("chat-1", _log())
    assert await repo.list_chats() == [Session("chat-1", "Named")]


async def test_delete_removes_chat_and_messages(repo):
    await repo.rename_chat("chat-1", "One")
    await repo.save_chat("chat-1", _log())
    await repo.rename_chat("chat-2", "Two")

    await repo.delete_chat("chat-1")

    assert await repo.list_chats() == [Session("chat-2", "Two")]
    assert await repo.load_chat("chat-1") == []


async def test_logs_are_isolated_per_chat(repo):
    log = _log()
    await repo.save_chat("chat-1", log)
    await repo.save_chat("chat-2", log[:1])
    assert await repo.load_chat("chat-1") == log
    assert await repo.load_chat("chat-2") == log[:1]


async def test_reveal_storage_location_opens_folder(repo, tmp_path):
    with patch(
        "snapthink.storage.chat_repo.asyncio.create_subprocess_exec", new=AsyncMock()
    ) as mock_exec, patch("snapthink.storage.chat_repo.platform.system", return_value="Linux"):
        await repo.reveal_storage_location()

    args = mock_exec.call_args[0]
    assert args == ("xdg-open", str((tmp_path / "nested").resolve()))


async def test_uninitialized_database_raises():
    repo = ChatRepository(Database(":memory:"))
    with pytest.raises(RuntimeError):
        await repo.list_chats()


async def test_failed_save_concurrent_with_rename_keeps_history(repo):
    log = _log()
    await repo.save_chat("chat-1", log)
    broken = [Message(Role.USER, None, "2025-01-01T10:05:00.000Z")]  # violates NOT NULL

    results = await asyncio.gather(
        repo.save_chat("chat-1", broken),
        repo.rename_chat("chat-1", "Renamed"),
        return_exceptions=True,
    )

    assert isinstance(results[0], sqlite3.IntegrityError)
    assert results[1] is None
    assert await repo.load_chat("chat-1") == log
    assert await repo.list_chats() == [Session("chat-1", "Renamed")]


async def test_concurrent_saves_are_not_interleaved(repo):
    first = _log()
    second = first + [Message(Role.USER, "Third", "2025-01-01T10:02:00.000Z")]

    await asyncio.gather(repo.save_chat("chat-1", first), repo.save_chat("chat-1", second))

    assert await repo.load_chat("chat-1") == second
