"""Convert a stored message log to the chat-completion wire format."""

from __future__ import annotations

from typing import Iterable

from snapthink.core.models import Message


def build_messages(history: Iterable[Message]) -> list[dict[str, str]]:
    """Return ``[{role, content}, ...]`` in conversation order.

    Timestamps are local bookkeeping and are not sent to the backend.
    """
    return [{"role": str(m.role), "content": m.content} for m in history]
