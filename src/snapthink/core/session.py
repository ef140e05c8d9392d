"""In-memory cache of known chat sessions."""

from __future__ import annotations

from typing import Iterable

from snapthink.core.models import Session
from snapthink.log import get_logger

logger = get_logger(__name__)


class SessionStore:
    """Ordered collection of sessions, mirrored to a ChatStore by the controller.

    The store reflects every change immediately; it never waits for the
    persistence layer.
    """

    def __init__(self, sessions: Iterable[Session] = ()) -> None:
        self._sessions: list[Session] = list(sessions)

    def replace(self, sessions: Iterable[Session]) -> None:
        self._sessions = list(sessions)
        logger.debug("sessions_loaded", count=len(self._sessions))

    def add(self, session: Session) -> None:
        self._sessions.append(session)

    def get(self, session_id: str) -> Session | None:
        for session in self._sessions:
            if session.id == session_id:
                return session
        return None

    def rename(self, session_id: str, name: str) -> bool:
        """Rename in place. Returns False if the id is unknown."""
        session = self.get(session_id)
        if session is None:
            return False
        session.name = name
        return True

    def remove(self, session_id: str) -> bool:
        before = len(self._sessions)
        self._sessions = [s for s in self._sessions if s.id != session_id]
        return len(self._sessions) != before

    def all(self) -> list[Session]:
        return [Session(s.id, s.name) for s in self._sessions]

    def ids(self) -> list[str]:
        return [s.id for s in self._sessions]

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return any(s.id == session_id for s in self._sessions)
