"""Terminal front-end: renders the conversation and maps commands to the controller."""

from __future__ import annotations

import asyncio
import sys
from datetime import datetime
from typing import TextIO

from snapthink.core.controller import ConversationController
from snapthink.core.errors import ChatError
from snapthink.core.models import Message, Session
from snapthink.core.types import Role

HELP_TEXT = """\
Commands:
  /new                 start a new chat
  /list                list chats
  /switch <n|id>       open a chat
  /rename <name>       rename the current chat
  /delete [n|id]       delete a chat (default: current)
  /folder              open the chat storage folder
  /stats               show token statistics
  /help                show this help
  /quit                exit
Anything else, including unknown /words, is sent to the model."""


def format_time(timestamp: str) -> str:
    """Local HH:MM for an ISO-8601 timestamp; the raw string if it cannot be parsed."""
    try:
        return datetime.fromisoformat(timestamp.replace("Z", "+00:00")).astimezone().strftime("%H:%M")
    except ValueError:
        return timestamp


def format_message(message: Message) -> str:
    who = "You" if message.role == Role.USER else "Bot"
    return f"[{who} {format_time(message.timestamp)}] {message.content}"


class ConsoleUI:
    """Line-oriented chat window."""

    def __init__(self, controller: ConversationController, out: TextIO | None = None):
        self._controller = controller
        self._out = out or sys.stdout

    def write(self, text: str = "") -> None:
        print(text, file=self._out)

    def warn(self, text: str) -> None:
        self.write(f"! {text}")

    async def run(self) -> None:
        self.write("SnapThink - type /help for commands.")
        self._print_sessions()
        while True:
            try:
                line = await asyncio.to_thread(input, self._prompt())
            except EOFError:
                break
            if not await self.handle_line(line):
                break

    async def handle_line(self, line: str) -> bool:
        """Process one line of input. Returns False when the user asked to quit."""
        stripped = line.strip()
        if not stripped.startswith("/"):
            await self._send(line)
            return True

        command, _, arg = stripped.partition(" ")
        arg = arg.strip()
        match command.lower():
            case "/quit" | "/exit":
                return False
            case "/help":
                self.write(HELP_TEXT)
            case "/new":
                session = await self._controller.create_session()
                self.write(f"Started {session.name} ({session.id})")
            case "/list":
                self._print_sessions()
            case "/switch":
                await self._switch(arg)
            case "/rename":
                await self._rename(arg)
            case "/delete":
                await self._delete(arg)
            case "/folder":
                await self._controller.reveal_storage_location()
            case "/stats":
                self._print_stats()
            case _:
                # Not a command, e.g. a path like /etc/hosts
                await self._send(line)
        return True

    async def _send(self, text: str) -> None:
        if not text.strip():
            return
        if self._controller.active_id and not (self._controller.loading or self._controller.load_failed):
            self.write("assistant: Typing...")
        try:
            reply = await self._controller.send_message(text)
        except ChatError as e:
            self.warn(str(e))
            return
        if reply is not None:
            self.write(format_message(reply))
            self._print_stats()

    async def _switch(self, ref: str) -> None:
        session = self._resolve(ref)
        if session is None:
            self.warn(f"No such chat: {ref or '(none given)'}")
            return
        messages = await self._controller.switch_session(session.id)
        self.write(f"-- {session.name} --")
        if self._controller.load_failed:
            self.warn("This chat could not be loaded.")
        for message in messages:
            self.write(format_message(message))

    async def _rename(self, name: str) -> None:
        active = self._controller.active_session
        if active is None:
            self.warn("Please create or select a chat session first.")
            return
        if not name:
            self.warn("Usage: /rename <name>")
            return
        await self._controller.rename_session(active.id, name)
        self.write(f"Renamed to {name}")

    async def _delete(self, ref: str) -> None:
        session = self._resolve(ref) if ref else self._controller.active_session
        if session is None:
            self.warn(f"No such chat: {ref or '(no active chat)'}")
            return
        if await self._controller.delete_session(session.id):
            self.write(f"Deleted {session.name}")

    def _resolve(self, ref: str) -> Session | None:
        sessions = self._controller.sessions
        if ref.isdigit():
            index = int(ref) - 1
            return sessions[index] if 0 <= index < len(sessions) else None
        for session in sessions:
            if session.id == ref:
                return session
        return None

    def _print_sessions(self) -> None:
        sessions = self._controller.sessions
        if not sessions:
            self.write("No chats yet. Use /new to start one.")
            return
        for i, session in enumerate(sessions, start=1):
            marker = "*" if session.id == self._controller.active_id else " "
            self.write(f"{marker}{i:>3}. {session.name}")

    def _print_stats(self) -> None:
        stats = self._controller.stats
        self.write(
            f"Total Tokens: {stats.total_tokens}, "
            f"Tokens/sec: {stats.tokens_per_second}, "
            f"Context Size: {stats.context_tokens}"
        )

    def _prompt(self) -> str:
        active = self._controller.active_session
        return f"{active.name}> " if active else "> "
