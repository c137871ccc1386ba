from __future__ import annotations

import os
import uuid

from lumiq.domain.services.editor_session import EditorSession
from lumiq.utils.logging import logger

# module-level in-memory store; sessions are never persisted
_MEM_SESSIONS: dict[str, EditorSession] = {}


class SessionRegistry:
    """Keeps the open editor sessions, keyed by an opaque id.

    Each session holds a decoded image, so the registry is bounded: once
    ``max_sessions`` are open, creating another one evicts the session that was
    used least recently. Insertion order of the backing dict is the recency
    order, and ``get`` moves a session to the back.
    """

    def __init__(
        self,
        store: dict[str, EditorSession] | None = None,
        max_sessions: int | None = None,
    ) -> None:
        self._sessions = _MEM_SESSIONS if store is None else store
        if max_sessions is None:
            max_sessions = int(os.getenv("LUMIQ_MAX_SESSIONS", "32"))
        if max_sessions <= 0:
            raise ValueError("max_sessions must be positive")
        self.max_sessions = max_sessions

    def create(self, session: EditorSession) -> str:
        while len(self._sessions) >= self.max_sessions:
            oldest = next(iter(self._sessions))
            del self._sessions[oldest]
            logger.info("Evicted idle session %s", oldest)
        session_id = f"ses_{uuid.uuid4().hex}"
        self._sessions[session_id] = session
        return session_id

    def get(self, session_id: str) -> EditorSession:
        session = self._sessions.pop(session_id, None)
        if session is None:
            raise ValueError("Session not found")
        self._sessions[session_id] = session
        return session

    def delete(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def __len__(self) -> int:
        return len(self._sessions)
