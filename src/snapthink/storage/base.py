"""Abstract chat persistence interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from snapthink.core.models import Message, Session


class ChatStore(ABC):
    """System of record for chat sessions and their message logs.

    Every method is an independent, atomic call; nothing groups two calls
    into one transaction.
    """

    @abstractmethod
    async def list_chats(self) -> list[Session]:
        """Return all sessions in creation order."""
        ...

    @abstractmethod
    async def load_chat(self, chat_id: str) -> list[Message]:
        """Return the stored log for *chat_id*, empty if there is none."""
        ...

    @abstractmethod
    async def save_chat(self, chat_id: str, messages: list[Message]) -> None:
        """Replace the whole stored log for *chat_id*."""
        ...

    @abstractmethod
    async def rename_chat(self, chat_id: str, name: str) -> None:
        """Set the display name, creating the session record if needed."""
        ...

    @abstractmethod
    async def delete_chat(self, chat_id: str) -> None:
        ...

    @abstractmethod
    async def reveal_storage_location(self) -> None:
        """Open the storage location in the host's file manager."""
        ...
