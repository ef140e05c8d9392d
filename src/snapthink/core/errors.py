"""User-facing errors raised by the conversation controller."""

from __future__ import annotations


class ChatError(Exception):
    """Base class for errors the UI should show to the user."""


class NoActiveSessionError(ChatError):
    def __init__(self) -> None:
        super().__init__("Please create or select a chat session first.")


class ExchangeInProgressError(ChatError):
    def __init__(self) -> None:
        super().__init__("A reply is still pending. Wait for it before sending again.")


class SessionLoadFailedError(ChatError):
    def __init__(self) -> None:
        super().__init__("This chat could not be loaded. Switch to it again before sending.")
