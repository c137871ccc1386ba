from __future__ import annotations

from dataclasses import dataclass

from lumiq.domain.entities.project import ProjectEntity
from lumiq.infrastructure.sessions.session_registry import SessionRegistry
from lumiq.infrastructure.storage.project_storage import ProjectStorage
from lumiq.utils.logging import logger


@dataclass
class ExportSessionUseCase:
    """
    Flatten a session's edits into new pixels and store them as a project.

    The session itself is left untouched: its image, adjustments and history
    are exactly the same after the export, so the user can keep editing.
    """

    sessions: SessionRegistry
    storage: ProjectStorage

    def execute(self, session_id: str, ext: str = "jpg") -> ProjectEntity:
        """
        Args:
            session_id: The session to export
            ext: Output format, ``jpg`` (default) or ``png``

        Returns:
            ProjectEntity describing the stored file

        Raises:
            ValueError: If the session does not exist
            PreconditionError: If the session has no image loaded
        """
        session = self.sessions.get(session_id)
        pixels = session.export_flattened()
        project = self.storage.save_export(pixels, ext=ext)
        logger.info("Exported session %s as %s", session_id, project.name)
        return project
