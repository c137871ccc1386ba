from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from lumiq.domain.entities.project import ProjectEntity


class ProjectMetadata(BaseModel):
    """An exported, flattened image."""
    name: str = Field(..., description="File name of the export", examples=["LUMIQ_1760000000000.jpg"])
    path: str = Field(..., description="Storage path of the export", examples=["LUMIQ/LUMIQ_1760000000000.jpg"])
    mime_type: str = Field(..., description="MIME type of the export", examples=["image/jpeg"])
    created_at: datetime = Field(..., description="ISO timestamp when the export was written")
    size: int | None = Field(None, description="Size of the file in bytes", examples=[48213])
    width: int | None = Field(None, description="Width in pixels", examples=[800])
    height: int | None = Field(None, description="Height in pixels", examples=[1000])

    @classmethod
    def from_entity(cls, entity: ProjectEntity) -> ProjectMetadata:
        return cls(
            name=entity.name,
            path=entity.path,
            mime_type=entity.mime_type,
            created_at=entity.created_at,
            size=entity.size,
            width=entity.width,
            height=entity.height,
        )


class ExportRequest(BaseModel):
    """Options for flattening a session."""
    format: str = Field("jpg", description="Output format", examples=["jpg"], pattern="^(jpg|jpeg|png)$")


class ExportResponse(BaseModel):
    """Response model for a successful export."""
    project: ProjectMetadata = Field(..., description="Metadata of the stored export")


class ListProjectsResponse(BaseModel):
    """Exported projects, newest first."""
    projects: list[ProjectMetadata] = Field(..., description="One page of projects")
    total: int = Field(..., description="Total number of projects", ge=0)
    limit: int = Field(..., description="Maximum number of projects returned", ge=1, le=100)
    offset: int = Field(..., description="Number of projects skipped", ge=0)
