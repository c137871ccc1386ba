from __future__ import annotations

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from fastapi.responses import Response
from starlette.concurrency import run_in_threadpool

from lumiq.application.dtos.common_dto import ErrorResponse, SuccessResponse
from lumiq.application.dtos.project_dto import ExportRequest, ExportResponse, ProjectMetadata
from lumiq.application.dtos.session_dto import (
    AdjustmentRequest,
    AdjustmentSelectRequest,
    AdjustmentValueRequest,
    CropRectModel,
    CropRequest,
    HistoryStepResponse,
    PreviewResponse,
    SessionResponse,
    ToolRequest,
)
from lumiq.application.use_cases.export_session import ExportSessionUseCase
from lumiq.application.use_cases.open_session import OpenSessionUseCase
from lumiq.domain.errors import PreconditionError
from lumiq.domain.services.editor_session import EditorSession
from lumiq.infrastructure.api.dependencies import get_session_registry, get_storage
from lumiq.infrastructure.sessions.session_registry import SessionRegistry
from lumiq.infrastructure.storage.project_storage import ProjectStorage, encode_image
from lumiq.utils.logging import logger

router = APIRouter(
    prefix="/sessions",
    tags=["Editor Sessions"],
    responses={
        404: {"model": ErrorResponse, "description": "Not Found - Session does not exist"},
        409: {"model": ErrorResponse, "description": "Conflict - Session has no image loaded"},
        422: {"description": "Validation Error - Invalid request format"},
    },
)


def _get_session(sessions: SessionRegistry, session_id: str) -> EditorSession:
    try:
        return sessions.get(session_id)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.post(
    "",
    response_model=SessionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Open Editor Session",
    description="""
    Upload an image and start editing it.

    **Supported formats**: anything Pillow can decode (JPEG, PNG, WEBP, ...)

    The new session starts with default adjustments (no brightness or warmth
    shift, neutral contrast and saturation, no rotation, full-frame crop) and
    empty undo/redo history.
    """,
    responses={400: {"model": ErrorResponse, "description": "Bad Request - Invalid image file"}},
)
async def open_session(
    file: UploadFile = File(..., description="Image file to edit"),
    sessions: SessionRegistry = Depends(get_session_registry),
):
    """Decode the upload and create a session for it."""
    data = await file.read()
    uc = OpenSessionUseCase(sessions=sessions)
    try:
        session_id, session = uc.execute(data)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    logger.info("Opened session %s from %s", session_id, file.filename or "upload")
    return SessionResponse.from_session(session_id, session)


@router.get("/{session_id}", response_model=SessionResponse, summary="Get Session State")
async def get_session(
    session_id: str,
    sessions: SessionRegistry = Depends(get_session_registry),
):
    session = _get_session(sessions, session_id)
    return SessionResponse.from_session(session_id, session)


@router.delete("/{session_id}", response_model=SuccessResponse, summary="Close Session")
async def close_session(
    session_id: str,
    sessions: SessionRegistry = Depends(get_session_registry),
):
    """Discard the session, its image and its history."""
    if not sessions.delete(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return SuccessResponse(ok=True)


@router.put(
    "/{session_id}/adjustments",
    response_model=SessionResponse,
    summary="Set Adjustment",
    description="""
    Set one adjustment field. Values outside the field's range are clamped.

    Slider adjustments do **not** record an undo checkpoint.
    """,
)
async def set_adjustment(
    session_id: str,
    body: AdjustmentRequest,
    sessions: SessionRegistry = Depends(get_session_registry),
):
    session = _get_session(sessions, session_id)
    session.set_adjustment_field(body.field, body.value)
    return SessionResponse.from_session(session_id, session)


@router.post(
    "/{session_id}/rotate",
    response_model=SessionResponse,
    summary="Rotate Quarter Turn",
    description="Record an undo checkpoint, then rotate clockwise by 90 degrees.",
)
async def rotate(
    session_id: str,
    sessions: SessionRegistry = Depends(get_session_registry),
):
    session = _get_session(sessions, session_id)
    session.rotate_quarter_turn()
    return SessionResponse.from_session(session_id, session)


@router.put(
    "/{session_id}/crop",
    response_model=SessionResponse,
    summary="Set Crop Box",
    description="Set the normalized crop box. Each edge is clamped into [0, 1] on its own.",
)
async def set_crop(
    session_id: str,
    body: CropRequest,
    sessions: SessionRegistry = Depends(get_session_registry),
):
    session = _get_session(sessions, session_id)
    session.set_crop(body.left, body.top, body.right, body.bottom)
    return SessionResponse.from_session(session_id, session)


@router.post("/{session_id}/tool", response_model=SessionResponse, summary="Select Tool")
async def select_tool(
    session_id: str,
    body: ToolRequest,
    sessions: SessionRegistry = Depends(get_session_registry),
):
    session = _get_session(sessions, session_id)
    session.select_tool(body.tool)
    return SessionResponse.from_session(session_id, session)


@router.post("/{session_id}/adjustment", response_model=SessionResponse, summary="Select Adjustment")
async def select_adjustment(
    session_id: str,
    body: AdjustmentSelectRequest,
    sessions: SessionRegistry = Depends(get_session_registry),
):
    session = _get_session(sessions, session_id)
    session.select_adjustment(body.adjustment)
    return SessionResponse.from_session(session_id, session)


@router.put(
    "/{session_id}/adjustment/value",
    response_model=SessionResponse,
    summary="Move Active Slider",
    description="Set the value of the active adjustment. Ignored when no adjustment is active.",
)
async def update_active_adjustment(
    session_id: str,
    body: AdjustmentValueRequest,
    sessions: SessionRegistry = Depends(get_session_registry),
):
    session = _get_session(sessions, session_id)
    session.update_active_adjustment(body.value)
    return SessionResponse.from_session(session_id, session)


@router.post("/{session_id}/undo", response_model=HistoryStepResponse, summary="Undo")
async def undo(
    session_id: str,
    sessions: SessionRegistry = Depends(get_session_registry),
):
    session = _get_session(sessions, session_id)
    changed = session.undo()
    return HistoryStepResponse(changed=changed, session=SessionResponse.from_session(session_id, session))


@router.post("/{session_id}/redo", response_model=HistoryStepResponse, summary="Redo")
async def redo(
    session_id: str,
    sessions: SessionRegistry = Depends(get_session_registry),
):
    session = _get_session(sessions, session_id)
    changed = session.redo()
    return HistoryStepResponse(changed=changed, session=SessionResponse.from_session(session_id, session))


@router.get(
    "/{session_id}/preview",
    response_model=PreviewResponse,
    summary="Preview Geometry and Color Filter",
    description="""
    Describe the live preview: the rotated and cropped frame size, the crop
    rectangle, and the color matrix the client applies as a filter.

    Baking this matrix into `/preview.png` gives exactly the exported pixels.
    """,
)
async def preview(
    session_id: str,
    sessions: SessionRegistry = Depends(get_session_registry),
):
    session = _get_session(sessions, session_id)
    try:
        frame = session.render_preview()
    except PreconditionError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    h, w = frame.pixels.shape[:2]
    frame_h, frame_w = frame.frame.shape[:2]
    rect = frame.crop_rect
    return PreviewResponse(
        width=w,
        height=h,
        frame_width=frame_w,
        frame_height=frame_h,
        crop_rect=CropRectModel(x=rect.x, y=rect.y, width=rect.width, height=rect.height),
        color_matrix=frame.color_transform.to_list(),
    )


@router.get(
    "/{session_id}/preview.png",
    summary="Preview Pixels",
    description="Rotated and cropped pixels, without the color filter applied.",
    responses={200: {"content": {"image/png": {}}, "description": "PNG image"}},
)
async def preview_png(
    session_id: str,
    sessions: SessionRegistry = Depends(get_session_registry),
):
    session = _get_session(sessions, session_id)
    try:
        frame = session.render_preview()
    except PreconditionError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    data, content_type = encode_image(frame.pixels, "png")
    return Response(content=data, media_type=content_type)


@router.get(
    "/{session_id}/preview/frame.png",
    summary="Preview Uncropped Frame",
    description="""
    Rotated but uncropped pixels, without the color filter applied.

    `crop_rect` from `/preview` is expressed in this frame's pixels, so a
    client can draw the crop box as an overlay on top of it.
    """,
    responses={200: {"content": {"image/png": {}}, "description": "PNG image"}},
)
async def preview_frame_png(
    session_id: str,
    sessions: SessionRegistry = Depends(get_session_registry),
):
    session = _get_session(sessions, session_id)
    try:
        frame = session.render_preview()
    except PreconditionError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    data, content_type = encode_image(frame.frame, "png")
    return Response(content=data, media_type=content_type)


@router.post(
    "/{session_id}/export",
    response_model=ExportResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Export Flattened Image",
    description="""
    Bake rotation, crop and color adjustments into new pixels and store the
    result as a project named `LUMIQ_<epoch millis>.<ext>`.

    The session is not modified and can keep being edited.
    """,
    responses={500: {"model": ErrorResponse, "description": "Internal Server Error - Storage failure"}},
)
async def export_session(
    session_id: str,
    body: ExportRequest | None = None,
    sessions: SessionRegistry = Depends(get_session_registry),
    storage: ProjectStorage = Depends(get_storage),
):
    fmt = body.format if body is not None else "jpg"
    uc = ExportSessionUseCase(sessions=sessions, storage=storage)
    try:
        project = await run_in_threadpool(uc.execute, session_id, fmt)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except PreconditionError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except RuntimeError as exc:
        raise HTTPException(status_code=500, detail=f"Export failed: {exc}") from exc
    return ExportResponse(project=ProjectMetadata.from_entity(project))
