from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response

from lumiq.application.dtos.common_dto import ErrorResponse, SuccessResponse
from lumiq.application.dtos.project_dto import ListProjectsResponse, ProjectMetadata
from lumiq.application.use_cases.list_projects import ListProjectsUseCase
from lumiq.infrastructure.api.dependencies import get_storage
from lumiq.infrastructure.storage.project_storage import ProjectStorage

router = APIRouter(
    prefix="/projects",
    tags=["Projects"],
    responses={
        404: {"model": ErrorResponse, "description": "Not Found - Project does not exist"},
        422: {"description": "Validation Error - Invalid request format"},
    },
)


@router.get(
    "",
    response_model=ListProjectsResponse,
    summary="List Projects",
    description="""
    List previously exported images, newest first.

    A project is any stored file named `LUMIQ_*` in the project folder.
    """,
)
async def list_projects(
    storage: ProjectStorage = Depends(get_storage),
    limit: int = Query(20, ge=1, le=100, description="Maximum number of projects to return (1-100)"),
    offset: int = Query(0, ge=0, description="Number of projects to skip from the beginning"),
):
    page, total = ListProjectsUseCase(storage=storage).execute(limit=limit, offset=offset)
    return ListProjectsResponse(
        projects=[ProjectMetadata.from_entity(p) for p in page],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get(
    "/{name}/download",
    summary="Download Project File",
    responses={200: {"content": {"image/*": {}}, "description": "Image file content"}},
)
async def download_project(
    name: str,
    storage: ProjectStorage = Depends(get_storage),
):
    try:
        data = storage.download_bytes(name)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    media_type = "image/png" if name.lower().endswith(".png") else "image/jpeg"
    return Response(content=data, media_type=media_type)


@router.delete("/{name}", response_model=SuccessResponse, summary="Delete Project")
async def delete_project(
    name: str,
    storage: ProjectStorage = Depends(get_storage),
):
    try:
        storage.delete(name)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return SuccessResponse(ok=True)
