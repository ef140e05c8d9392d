"""Console front-end command handling."""

from __future__ import annotations

import io

import pytest

from snapthink.console import ConsoleUI, format_message
from snapthink.core.models import Message
from snapthink.core.types import Role

from conftest import reply


@pytest.fixture
def out() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def ui(controller, out) -> ConsoleUI:
    return ConsoleUI(controller, out=out)


async def test_send_without_session_shows_alert(ui, out, client):
    assert await ui.handle_line("hello")
    assert "Please create or select a chat session first." in out.getvalue()
    assert client.requests == []


async def test_new_then_send(ui, out, controller, client):
    client.queue(reply("Bonjour"))
    await ui.handle_line("/new")
    await ui.handle_line("hello")

    text = out.getvalue()
    assert "Started New Chat" in text
    assert "Typing..." in text
    assert "Bonjour" in text
    assert "Total Tokens:" in text
    assert len(controller.messages) == 2


async def test_list_switch_and_delete(ui, out, controller, store):
    store.chats = {"chat-1": "Recipes", "chat-2": "Travel"}
    store.logs["chat-2"] = [Message(Role.USER, "Where to?", "2025-01-01T10:00:00.000Z")]
    await controller.load_sessions()

    await ui.handle_line("/list")
    await ui.handle_line("/switch 2")
    assert controller.active_id == "chat-2"
    assert "Where to?" in out.getvalue()

    await ui.handle_line("/delete")
    assert controller.active_id == ""
    assert [s.id for s in controller.sessions] == ["chat-1"]


async def test_switch_unknown(ui, out):
    await ui.handle_line("/switch 7")
    assert "No such chat: 7" in out.getvalue()


async def test_rename(ui, controller):
    await ui.handle_line("/new")
    await ui.handle_line("/rename  Weekend plans ")
    assert controller.sessions[0].name == "Weekend plans"


async def test_folder(ui, store):
    await ui.handle_line("/folder")
    assert store.revealed == 1


async def test_quit(ui):
    assert not await ui.handle_line("/quit")


async def test_unknown_slash_input_is_sent_as_text(ui, controller, client):
    await ui.handle_line("/new")
    assert await ui.handle_line("/etc/hosts is where I map names")

    assert [m.content for m in client.requests[0]] == ["/etc/hosts is where I map names"]
    assert len(controller.messages) == 2


def test_format_message_labels():
    assert format_message(Message(Role.USER, "hi", "bad-ts")) == "[You bad-ts] hi"
    assert format_message(Message(Role.ASSISTANT, "yo", "bad-ts")) == "[Bot bad-ts] yo"
