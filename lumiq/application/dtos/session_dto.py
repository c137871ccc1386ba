from __future__ import annotations

from pydantic import BaseModel, Field

from lumiq.domain.entities.edit_state import AdjustmentField, AdjustmentType, EditState, Tool
from lumiq.domain.services.editor_session import EditorSession


class EditStateModel(BaseModel):
    """All adjustment values of a session, already clamped into range."""
    brightness: float = Field(..., description="Brightness offset in [-1, 1]", examples=[0.0])
    contrast: float = Field(..., description="Contrast factor in [0.5, 1.5]", examples=[1.0])
    saturation: float = Field(..., description="Saturation factor in [0, 2]", examples=[1.0])
    warmth: float = Field(..., description="Warmth shift in [-1, 1]", examples=[0.0])
    rotation_degrees: float = Field(..., description="Clockwise rotation in [0, 360)", examples=[90.0])
    crop_left: float = Field(..., description="Normalized left crop edge in [0, 1]", examples=[0.0])
    crop_top: float = Field(..., description="Normalized top crop edge in [0, 1]", examples=[0.0])
    crop_right: float = Field(..., description="Normalized right crop edge in [0, 1]", examples=[1.0])
    crop_bottom: float = Field(..., description="Normalized bottom crop edge in [0, 1]", examples=[1.0])

    @classmethod
    def from_state(cls, state: EditState) -> EditStateModel:
        return cls(**state.to_dict())


class SessionResponse(BaseModel):
    """Snapshot of an editor session."""
    id: str = Field(..., description="Session identifier", examples=["ses_4f1c..."])
    width: int | None = Field(None, description="Source image width in pixels", examples=[800])
    height: int | None = Field(None, description="Source image height in pixels", examples=[1000])
    state: EditStateModel = Field(..., description="Current adjustment values")
    can_undo: bool = Field(..., description="Whether an undo step is available")
    can_redo: bool = Field(..., description="Whether a redo step is available")
    undo_depth: int = Field(..., description="Number of checkpoints on the undo stack", ge=0)
    redo_depth: int = Field(..., description="Number of states on the redo stack", ge=0)
    active_tool: Tool = Field(Tool.NONE, description="Currently selected tool")
    active_adjustment: AdjustmentType | None = Field(None, description="Slider bound to the adjust tool")

    @classmethod
    def from_session(cls, session_id: str, session: EditorSession) -> SessionResponse:
        size = session.source_size
        history = session.history
        return cls(
            id=session_id,
            width=size[0] if size else None,
            height=size[1] if size else None,
            state=EditStateModel.from_state(session.state),
            can_undo=history.can_undo,
            can_redo=history.can_redo,
            undo_depth=history.undo_depth,
            redo_depth=history.redo_depth,
            active_tool=session.active_tool,
            active_adjustment=session.active_adjustment,
        )


class HistoryStepResponse(BaseModel):
    """Result of an undo or redo request."""
    changed: bool = Field(..., description="False when there was nothing to undo/redo")
    session: SessionResponse


class AdjustmentRequest(BaseModel):
    """Set a single adjustment field. Out-of-range values are clamped, not rejected."""
    field: AdjustmentField = Field(..., description="Field to update", examples=["brightness"])
    value: float = Field(..., description="New value", examples=[0.5])


class CropRequest(BaseModel):
    """Normalized crop box; each edge is clamped into [0, 1] independently."""
    left: float = Field(..., examples=[0.1])
    top: float = Field(..., examples=[0.1])
    right: float = Field(..., examples=[0.9])
    bottom: float = Field(..., examples=[0.9])


class ToolRequest(BaseModel):
    """Select an editing tool. Selecting ``rotate`` rotates by a quarter turn."""
    tool: Tool = Field(..., examples=["adjust"])


class AdjustmentSelectRequest(BaseModel):
    """Choose which slider the adjust tool drives."""
    adjustment: AdjustmentType = Field(..., examples=["contrast"])


class AdjustmentValueRequest(BaseModel):
    """Move the slider of the active adjustment."""
    value: float = Field(..., examples=[1.2])


class CropRectModel(BaseModel):
    x: int = Field(..., ge=0)
    y: int = Field(..., ge=0)
    width: int = Field(..., ge=1)
    height: int = Field(..., ge=1)


class PreviewResponse(BaseModel):
    """Preview geometry plus the color filter the client applies on top of it."""
    width: int = Field(..., description="Width of the rotated and cropped preview", ge=1)
    height: int = Field(..., description="Height of the rotated and cropped preview", ge=1)
    frame_width: int = Field(..., description="Width of the rotated, uncropped frame", ge=1)
    frame_height: int = Field(..., description="Height of the rotated, uncropped frame", ge=1)
    crop_rect: CropRectModel = Field(..., description="Crop rectangle in rotated-image pixels")
    color_matrix: list[float] = Field(
        ...,
        description="Row-major 4x4 affine matrix over [R, G, B, 1] in the 0..255 domain",
        min_length=16,
        max_length=16,
    )
