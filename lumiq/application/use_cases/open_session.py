from __future__ import annotations

from dataclasses import dataclass

from lumiq.domain.services.editor_session import EditorSession
from lumiq.infrastructure.sessions.session_registry import SessionRegistry
from lumiq.infrastructure.storage.project_storage import decode_image


@dataclass
class OpenSessionUseCase:
    sessions: SessionRegistry

    def execute(self, data: bytes) -> tuple[str, EditorSession]:
        """
        Decode an uploaded image and start a fresh editing session for it.

        The new session starts with default adjustments and empty undo/redo history.

        Raises:
            ValueError: If the bytes are not a decodable image
        """
        try:
            pixels = decode_image(data)
        except Exception as exc:
            raise ValueError(f"Invalid image file: {exc}") from exc
        session = EditorSession()
        session.load_image(pixels)
        return self.sessions.create(session), session
