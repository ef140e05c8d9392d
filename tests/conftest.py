"""Shared fakes for controller and console tests."""

from __future__ import annotations

import asyncio
from typing import Sequence

import pytest

from snapthink.ai.client import AssistantReply, InferenceClient
from snapthink.core.controller import ConversationController
from snapthink.core.models import Message, Session
from snapthink.storage.base import ChatStore


class FakeChatStore(ChatStore):
    """In-memory ChatStore that records calls and can be told to fail."""

    def __init__(self) -> None:
        self.chats: dict[str, str] = {}
        self.logs: dict[str, list[Message]] = {}
        self.calls: list[tuple] = []
        self.fail: set[str] = set()
        self.revealed = 0

    def _record(self, name: str, *args) -> None:
        self.calls.append((name, *args))
        if name in self.fail:
            raise OSError(f"{name} unavailable")

    async def list_chats(self) -> list[Session]:
        self._record("list_chats")
        return [Session(i, n) for i, n in self.chats.items()]

    async def load_chat(self, chat_id: str) -> list[Message]:
        self._record("load_chat", chat_id)
        return list(self.logs.get(chat_id, []))

    async def save_chat(self, chat_id: str, messages: list[Message]) -> None:
        self._record("save_chat", chat_id, list(messages))
        self.chats.setdefault(chat_id, "New Chat")
        self.logs[chat_id] = list(messages)

    async def rename_chat(self, chat_id: str, name: str) -> None:
        self._record("rename_chat", chat_id, name)
        self.chats[chat_id] = name

    async def delete_chat(self, chat_id: str) -> None:
        self._record("delete_chat", chat_id)
        self.chats.pop(chat_id, None)
        self.logs.pop(chat_id, None)

    async def reveal_storage_location(self) -> None:
        self._record("reveal_storage_location")
        self.revealed += 1

    def call_names(self) -> list[str]:
        return [c[0] for c in self.calls]


class FakeClient(InferenceClient):
    """Returns queued replies (or raises queued exceptions)."""

    def __init__(self, *outcomes: AssistantReply | Exception) -> None:
        self.outcomes = list(outcomes)
        self.requests: list[list[Message]] = []
        self.gate: asyncio.Event | None = None

    @property
    def model_name(self) -> str:
        return "fake-model"

    def queue(self, *outcomes: AssistantReply | Exception) -> None:
        self.outcomes.extend(outcomes)

    async def complete(self, messages: Sequence[Message]) -> AssistantReply:
        self.requests.append(list(messages))
        if self.gate is not None:
            await self.gate.wait()
        outcome = self.outcomes.pop(0) if self.outcomes else AssistantReply(content="ok")
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def reply(text: str | None) -> AssistantReply:
    return AssistantReply(content=text, raw={"message": {"content": text}} if text is not None else {})


@pytest.fixture
def store() -> FakeChatStore:
    return FakeChatStore()


@pytest.fixture
def client() -> FakeClient:
    return FakeClient()


@pytest.fixture
def warnings() -> list[str]:
    return []


@pytest.fixture
def controller(store, client, warnings) -> ConversationController:
    return ConversationController(store, client, on_warning=warnings.append)
