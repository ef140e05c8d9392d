"""Inference client abstraction with an Ollama chat-completion backend."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Sequence

import httpx

from snapthink.ai.conversation import build_messages
from snapthink.config import OllamaConfig
from snapthink.core.models import Message
from snapthink.log import get_logger

logger = get_logger(__name__)

CHAT_ENDPOINT = "/api/chat"


class InferenceError(Exception):
    """The backend could not be reached or returned an unreadable body."""


@dataclass
class AssistantReply:
    """Parsed backend reply. ``content`` is None when no message came back."""

    content: str | None
    raw: Any = None


class InferenceClient(ABC):
    """Abstract base class for inference backends."""

    @abstractmethod
    async def complete(self, messages: Sequence[Message]) -> AssistantReply:
        """Send the whole conversation and return one assistant reply.

        Raises InferenceError on any transport failure. Implementations do
        not retry.
        """
        ...

    @property
    @abstractmethod
    def model_name(self) -> str:
        ...

    async def close(self) -> None:
        return None


class OllamaClient(InferenceClient):
    """Non-streaming client for Ollama's ``/api/chat`` endpoint."""

    def __init__(self, config: OllamaConfig, transport: httpx.AsyncBaseTransport | None = None):
        self._model = config.model
        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            timeout=config.timeout,
            transport=transport,
        )

    @property
    def model_name(self) -> str:
        return self._model

    async def complete(self, messages: Sequence[Message]) -> AssistantReply:
        payload = {
            "model": self._model,
            "messages": build_messages(messages),
            "stream": False,
        }
        logger.debug("chat_request", model=self._model, message_count=len(messages))

        try:
            response = await self._client.post(CHAT_ENDPOINT, json=payload)
            data = response.json()
        except httpx.HTTPError as e:
            raise InferenceError(f"Request to {CHAT_ENDPOINT} failed: {e}") from e
        except ValueError as e:
            raise InferenceError(f"Malformed response body: {e}") from e

        content = _extract_content(data)
        logger.debug(
            "chat_response",
            model=self._model,
            status=response.status_code,
            has_message=content is not None,
        )
        return AssistantReply(content=content, raw=data)

    async def close(self) -> None:
        await self._client.aclose()


def _extract_content(data: Any) -> str | None:
    """Pull ``message.content`` out of a reply body, if it is there."""
    if not isinstance(data, dict):
        return None
    message = data.get("message")
    if not isinstance(message, dict):
        return None
    content = message.get("content")
    return content if isinstance(content, str) else None
