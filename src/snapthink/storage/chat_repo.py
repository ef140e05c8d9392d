"""SQLite-backed chat repository."""

from __future__ import annotations

import asyncio
import platform

from snapthink.core.models import Message, Session
from snapthink.log import get_logger
from snapthink.storage.base import ChatStore
from snapthink.storage.database import Database

logger = get_logger(__name__)

_NOW_SQL = "strftime('%Y-%m-%dT%H:%M:%f','now')"


class ChatRepository(ChatStore):
    """Stores sessions in ``chats`` and their logs in ``chat_messages``.

    Writes share one connection, so each write method holds ``_write_lock``
    for its whole transaction; a commit from one call can never land in the
    middle of another.
    """

    def __init__(self, db: Database, default_name: str = "New Chat"):
        self._db = db
        self._default_name = default_name
        self._write_lock = asyncio.Lock()

    async def list_chats(self) -> list[Session]:
        cursor = await self._db.conn.execute("SELECT id, name FROM chats ORDER BY rowid ASC")
        rows = await cursor.fetchall()
        return [Session(id=row["id"], name=row["name"]) for row in rows]

    async def load_chat(self, chat_id: str) -> list[Message]:
        cursor = await self._db.conn.execute(
            """SELECT role, content, timestamp FROM chat_messages
               WHERE chat_id = ?
               ORDER BY position ASC""",
            (chat_id,),
        )
        rows = await cursor.fetchall()
        return [Message.from_dict(dict(row)) for row in rows]

    async def save_chat(self, chat_id: str, messages: list[Message]) -> None:
        """Overwrite the stored log in a single transaction."""
        conn = self._db.conn
        async with self._write_lock:
            try:
                await conn.execute(
                    f"""INSERT INTO chats (id, name) VALUES (?, ?)
                        ON CONFLICT(id) DO UPDATE SET updated_at = {_NOW_SQL}""",
                    (chat_id, self._default_name),
                )
                await conn.execute("DELETE FROM chat_messages WHERE chat_id = ?", (chat_id,))
                await conn.executemany(
                    """INSERT INTO chat_messages (chat_id, position, role, content, timestamp)
                       VALUES (?, ?, ?, ?, ?)""",
                    [
                        (chat_id, position, str(m.role), m.content, m.timestamp)
                        for position, m in enumerate(messages)
                    ],
                )
                await conn.commit()
            except Exception:
                await conn.rollback()
                raise
        logger.debug("chat_saved", chat_id=chat_id, message_count=len(messages))

    async def rename_chat(self, chat_id: str, name: str) -> None:
        conn = self._db.conn
        async with self._write_lock:
            await conn.execute(
                f"""INSERT INTO chats (id, name) VALUES (?, ?)
                    ON CONFLICT(id) DO UPDATE SET name = excluded.name, updated_at = {_NOW_SQL}""",
                (chat_id, name),
            )
            await conn.commit()
        logger.debug("chat_renamed", chat_id=chat_id, name=name)

    async def delete_chat(self, chat_id: str) -> None:
        conn = self._db.conn
        async with self._write_lock:
            try:
                await conn.execute("DELETE FROM chat_messages WHERE chat_id = ?", (chat_id,))
                await conn.execute("DELETE FROM chats WHERE id = ?", (chat_id,))
                await conn.commit()
            except Exception:
                await conn.rollback()
                raise
        logger.info("chat_deleted", chat_id=chat_id)

    async def reveal_storage_location(self) -> None:
        folder = self._db.path.resolve().parent
        folder.mkdir(parents=True, exist_ok=True)
        cmd = [_file_manager_command(), str(folder)]
        logger.info("reveal_storage_location", path=str(folder))
        await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.DEVNULL,
        )


def _file_manager_command() -> str:
    match platform.system():
        case "Darwin":
            return "open"
        case "Windows":
            return "explorer"
        case _:
            return "xdg-open"
