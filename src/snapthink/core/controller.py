"""Conversation controller: owns chat state and drives each exchange.

All state changes are applied in memory first and mirrored to the ChatStore
afterwards (optimistic, best-effort). A failed mirror call is logged and
reported through ``on_warning``; it never rolls back what the user already
sees. Only one exchange may be outstanding at a time.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Awaitable, Callable, Coroutine

from snapthink.ai.client import InferenceClient
from snapthink.config import ChatConfig
from snapthink.core.errors import (
    ExchangeInProgressError,
    NoActiveSessionError,
    SessionLoadFailedError,
)
from snapthink.core.models import ChatState, ChatStats, Message, Session
from snapthink.core.session import SessionStore
from snapthink.core.tokens import compute_stats
from snapthink.core.types import Role
from snapthink.log import get_logger
from snapthink.storage.base import ChatStore

logger = get_logger(__name__)

FETCH_FAILED_TEXT = "[Error: Unable to fetch response]"
NO_MESSAGE_TEXT = "[Error: No message returned]"


def derive_title(text: str, max_length: int = 40) -> str:
    """Session name from a first message: trimmed, truncated, newlines as spaces."""
    return text.strip()[:max_length].replace("\n", " ")


class ConversationController:
    """Single owner of the active session, its message log and derived stats."""

    def __init__(
        self,
        store: ChatStore,
        client: InferenceClient,
        config: ChatConfig | None = None,
        on_warning: Callable[[str], None] | None = None,
    ):
        self._store = store
        self._client = client
        self._config = config or ChatConfig()
        self._on_warning = on_warning
        self._sessions = SessionStore()
        self._state = ChatState()
        self._background: set[asyncio.Task] = set()
        self._deleted: set[str] = set()
        self._last_id_ms = 0

    # -- read-only views ---------------------------------------------------

    @property
    def active_id(self) -> str:
        return self._state.active_id

    @property
    def active_session(self) -> Session | None:
        if not self._state.active_id:
            return None
        return self._sessions.get(self._state.active_id)

    @property
    def messages(self) -> list[Message]:
        return list(self._state.messages)

    @property
    def sessions(self) -> list[Session]:
        return self._sessions.all()

    @property
    def loading(self) -> bool:
        return self._state.loading

    @property
    def stats(self) -> ChatStats:
        return self._state.stats

    @property
    def load_failed(self) -> bool:
        """True if the last switch_session could not read the stored log."""
        return self._state.load_failed

    # -- session lifecycle -------------------------------------------------

    async def load_sessions(self) -> list[Session]:
        """Fill the session list from the store. Called once at startup."""
        try:
            sessions = await self._store.list_chats()
        except Exception as e:
            self._warn("list_chats", e)
            return []
        self._sessions.replace(sessions)
        logger.info("sessions_listed", count=len(sessions))
        return self._sessions.all()

    async def create_session(self) -> Session:
        session = Session(id=self._next_session_id(), name=self._config.default_name)
        self._state.active_id = session.id
        self._state.messages = []
        self._state.load_failed = False
        self._sessions.add(session)
        logger.info("session_created", chat_id=session.id)

        await self._mirror("rename_chat", self._store.rename_chat(session.id, session.name))
        return Session(session.id, session.name)

    async def switch_session(self, chat_id: str) -> list[Message]:
        """Make *chat_id* active and load its log.

        A failed load leaves an empty log and sets ``load_failed`` instead of
        raising, so an empty result can be told apart from an empty session.
        """
        self._state.active_id = chat_id
        self._state.messages = []
        self._state.load_failed = False

        try:
            loaded = await self._store.load_chat(chat_id)
        except Exception as e:
            if self._state.active_id == chat_id:
                self._state.load_failed = True
            self._warn("load_chat", e, chat_id=chat_id)
            return []

        # Another switch may have happened while we were waiting.
        if self._state.active_id == chat_id:
            self._state.messages = list(loaded)
        logger.info("session_switched", chat_id=chat_id, message_count=len(loaded))
        return list(loaded)

    async def rename_session(self, chat_id: str, name: str) -> None:
        self._sessions.rename(chat_id, name)
        await self._mirror("rename_chat", self._store.rename_chat(chat_id, name), chat_id=chat_id)

    async def delete_session(self, chat_id: str) -> bool:
        """Delete from the store, then from memory. Returns False if the store refused.

        The id is marked deleted before the store call so that a pending
        exchange or title rename for it never writes the chat back.
        """
        self._deleted.add(chat_id)
        if not await self._mirror("delete_chat", self._store.delete_chat(chat_id), chat_id=chat_id):
            self._deleted.discard(chat_id)
            return False
        self._sessions.remove(chat_id)
        if self._state.active_id == chat_id:
            self._state.clear_active()
        logger.info("session_deleted", chat_id=chat_id)
        return True

    async def reveal_storage_location(self) -> None:
        await self._mirror("reveal_storage_location", self._store.reveal_storage_location())

    # -- exchange ----------------------------------------------------------

    async def send_message(self, text: str) -> Message | None:
        """Run one exchange and return the assistant message that was appended.

        Blank input is ignored and returns None. Raises NoActiveSessionError,
        ExchangeInProgressError or SessionLoadFailedError before touching any
        state. Sending into a chat whose log failed to load would overwrite
        the stored history with the new exchange alone.
        """
        if not text.strip():
            return None
        if not self._state.active_id:
            raise NoActiveSessionError()
        if self._state.loading:
            raise ExchangeInProgressError()
        if self._state.load_failed:
            raise SessionLoadFailedError()

        chat_id = self._state.active_id
        first_message = not self._state.messages
        context = [*self._state.messages, Message.create(Role.USER, text)]
        self._state.messages = context
        self._state.loading = True

        try:
            if first_message:
                title = derive_title(text, self._config.title_max_length)
                if title:
                    self._spawn(self._auto_rename(chat_id, title))

            start = time.perf_counter()
            try:
                reply = await self._client.complete(context)
                elapsed = time.perf_counter() - start
                content = reply.content if reply.content is not None else NO_MESSAGE_TEXT
                assistant = Message.create(Role.ASSISTANT, content)
                succeeded = True
            except Exception as e:
                logger.warning("exchange_failed", chat_id=chat_id, error=str(e))
                assistant = Message.create(Role.ASSISTANT, FETCH_FAILED_TEXT)
                elapsed = 0.0
                succeeded = False

            updated = [*context, assistant]
            still_active = self._state.active_id == chat_id
            if still_active:
                self._state.messages = updated
            if chat_id in self._deleted:
                logger.info("save_skipped_deleted", chat_id=chat_id)
            else:
                await self._mirror("save_chat", self._store.save_chat(chat_id, updated), chat_id=chat_id)

            if succeeded:
                stats = compute_stats(updated, context, assistant, elapsed)
                # Stats describe the visible chat only.
                if still_active and self._state.active_id == chat_id:
                    self._state.stats = stats
                logger.info(
                    "exchange_completed",
                    chat_id=chat_id,
                    elapsed=round(elapsed, 3),
                    total_tokens=stats.total_tokens,
                )
            return assistant
        finally:
            self._state.loading = False

    async def drain(self) -> None:
        """Wait for background persistence tasks (first-message renames)."""
        if self._background:
            await asyncio.gather(*list(self._background))

    # -- internals ---------------------------------------------------------

    async def _auto_rename(self, chat_id: str, title: str) -> None:
        if chat_id in self._deleted:
            return
        await self.rename_session(chat_id, title)

    def _next_session_id(self) -> str:
        millis = time.time_ns() // 1_000_000
        if millis <= self._last_id_ms:
            millis = self._last_id_ms + 1
        while f"chat-{millis}" in self._sessions:
            millis += 1
        self._last_id_ms = millis
        return f"chat-{millis}"

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _mirror(self, action: str, call: Awaitable[None], **context: str) -> bool:
        try:
            await call
        except Exception as e:
            self._warn(action, e, **context)
            return False
        return True

    def _warn(self, action: str, error: Exception, **context: str) -> None:
        logger.warning("persistence_failed", action=action, error=str(error), **context)
        if self._on_warning is not None:
            self._on_warning(f"Could not {action.replace('_', ' ')}: {error}")
