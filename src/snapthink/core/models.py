"""Chat data models: messages, sessions, stats and controller state."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from snapthink.core.types import Role


def utc_timestamp() -> str:
    """Current time as ISO-8601 UTC with millisecond precision, e.g. ``2025-01-01T10:00:00.000Z``."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True, slots=True)
class Message:
    role: Role
    content: str
    timestamp: str

    @classmethod
    def create(cls, role: Role | str, content: str) -> Message:
        return cls(role=Role(role), content=content, timestamp=utc_timestamp())

    def to_dict(self) -> dict[str, str]:
        return {"role": str(self.role), "content": self.content, "timestamp": self.timestamp}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Message:
        return cls(
            role=Role(data["role"]),
            content=str(data.get("content", "")),
            timestamp=str(data.get("timestamp", "")),
        )


@dataclass(slots=True)
class Session:
    id: str
    name: str


@dataclass(frozen=True, slots=True)
class ChatStats:
    """Derived figures for the latest exchange. Never persisted."""

    total_tokens: int = 0
    tokens_per_second: int = 0
    context_tokens: int = 0


@dataclass
class ChatState:
    """Mutable state owned by a single ConversationController."""

    active_id: str = ""
    messages: list[Message] = field(default_factory=list)
    loading: bool = False
    stats: ChatStats = field(default_factory=ChatStats)
    load_failed: bool = False

    def clear_active(self) -> None:
        self.active_id = ""
        self.messages = []
        self.load_failed = False
