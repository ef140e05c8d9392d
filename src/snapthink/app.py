"""Application orchestrator - wires all components and manages lifecycle."""

from __future__ import annotations

from typing import Callable

from snapthink.ai.client import InferenceClient, OllamaClient
from snapthink.config import AppConfig
from snapthink.core.controller import ConversationController
from snapthink.log import get_logger
from snapthink.storage.base import ChatStore
from snapthink.storage.chat_repo import ChatRepository
from snapthink.storage.database import Database

logger = get_logger(__name__)


class SnapThinkApp:
    """Top-level application orchestrator."""

    def __init__(
        self,
        config: AppConfig,
        on_warning: Callable[[str], None] | None = None,
        client: InferenceClient | None = None,
    ):
        self.config = config
        self.db = Database(config.storage.db_path)
        self.chat_store: ChatStore = ChatRepository(self.db, default_name=config.chat.default_name)
        self.client = client or OllamaClient(config.ollama)
        self.controller = ConversationController(
            store=self.chat_store,
            client=self.client,
            config=config.chat,
            on_warning=on_warning,
        )

    async def start(self) -> None:
        """Open storage and load the session list."""
        await self.db.initialize()
        sessions = await self.controller.load_sessions()
        logger.info(
            "snapthink_started",
            model=self.client.model_name,
            base_url=self.config.ollama.base_url,
            session_count=len(sessions),
        )

    async def stop(self) -> None:
        """Flush pending writes and release resources."""
        await self.controller.drain()
        await self.client.close()
        await self.db.close()
        logger.info("snapthink_stopped")
