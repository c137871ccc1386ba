from __future__ import annotations

from dataclasses import dataclass

from lumiq.domain.entities.project import ProjectEntity
from lumiq.infrastructure.storage.project_storage import ProjectStorage


@dataclass
class ListProjectsUseCase:
    storage: ProjectStorage

    def execute(self, limit: int = 20, offset: int = 0) -> tuple[list[ProjectEntity], int]:
        """Return one page of exported projects (newest first) and the total count."""
        items = self.storage.list_projects()
        return items[offset : offset + limit], len(items)
