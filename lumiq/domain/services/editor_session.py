from __future__ import annotations

from concurrent.futures import Executor, Future
from dataclasses import dataclass

import numpy as np

from lumiq.domain.entities.edit_state import AdjustmentField, AdjustmentType, EditState, Tool
from lumiq.domain.errors import PreconditionError
from lumiq.domain.services.color_matrix_service import ColorMatrixService, ColorTransform
from lumiq.domain.services.geometry_service import CropRect, GeometryService
from lumiq.domain.services.history_manager import HistoryManager
from lumiq.utils.logging import logger


@dataclass(frozen=True)
class PreviewFrame:
    """Geometry-applied pixels plus the color filter the viewer should apply.

    ``frame`` is the rotated, uncropped image that ``crop_rect`` is expressed
    in, for drawing a crop overlay; ``pixels`` is that rectangle cut out of it.
    """

    pixels: np.ndarray
    color_transform: ColorTransform
    crop_rect: CropRect
    frame: np.ndarray


def flatten(source: np.ndarray, state: EditState) -> np.ndarray:
    """Rotate and crop ``source`` for ``state``, then bake its color transform."""
    geometry = GeometryService.apply_state(source, state)
    return ColorMatrixService.apply_color_transform(
        geometry, ColorMatrixService.transform_for_state(state)
    )


def _as_rgba(pixels: np.ndarray) -> np.ndarray:
    arr = np.asarray(pixels)
    if arr.dtype != np.uint8:
        raise ValueError(f"Expected uint8 pixels, got {arr.dtype}")
    if arr.ndim != 3 or arr.shape[2] not in (3, 4) or arr.shape[0] == 0 or arr.shape[1] == 0:
        raise ValueError(f"Expected an (H, W, 3|4) pixel buffer, got shape {arr.shape}")
    if arr.shape[2] == 3:
        alpha = np.full(arr.shape[:2] + (1,), 255, dtype=np.uint8)
        return np.concatenate([arr, alpha], axis=2)
    return arr.copy()


class EditorSession:
    """Holds one image, its current :class:`EditState` and its undo history.

    Every mutation replaces the state with a new immutable value. Only discrete
    tool actions (rotation) record a checkpoint; slider moves and crop drags
    change the state without touching history.
    """

    def __init__(self, history: HistoryManager | None = None) -> None:
        self._source: np.ndarray | None = None
        self._state = EditState()
        self._history = history if history is not None else HistoryManager()
        self.active_tool = Tool.NONE
        self.active_adjustment: AdjustmentType | None = None

    # ------------------------------------------------------------------
    # Accessors
    @property
    def state(self) -> EditState:
        return self._state

    @property
    def history(self) -> HistoryManager:
        return self._history

    @property
    def has_image(self) -> bool:
        return self._source is not None

    @property
    def source_size(self) -> tuple[int, int] | None:
        if self._source is None:
            return None
        h, w = self._source.shape[:2]
        return w, h

    def _require_source(self) -> np.ndarray:
        if self._source is None:
            raise PreconditionError("no image loaded")
        return self._source

    # ------------------------------------------------------------------
    # Mutations
    def load_image(self, pixels: np.ndarray) -> None:
        """Take ownership of a copy of ``pixels`` and reset all edits."""
        self._source = _as_rgba(pixels)
        self._state = EditState()
        self._history.clear()
        self.active_tool = Tool.NONE
        self.active_adjustment = None
        w, h = self.source_size
        logger.info("Loaded %dx%d image into editor session", w, h)

    def set_adjustment_field(self, field: AdjustmentField | str, value: float) -> EditState:
        self._state = self._state.with_field(field, value)
        logger.debug("Adjusted %s to %r", field, value)
        return self._state

    def rotate_quarter_turn(self) -> EditState:
        self._history.record_checkpoint(self._state)
        self._state = self._state.with_field(
            AdjustmentField.ROTATION_DEGREES, (self._state.rotation_degrees + 90.0) % 360.0
        )
        return self._state

    def set_crop(self, left: float, top: float, right: float, bottom: float) -> EditState:
        self._state = self._state.with_crop(left, top, right, bottom)
        return self._state

    def undo(self) -> bool:
        previous = self._history.undo(self._state)
        if previous is None:
            return False
        self._state = previous
        return True

    def redo(self) -> bool:
        following = self._history.redo(self._state)
        if following is None:
            return False
        self._state = following
        return True

    # ------------------------------------------------------------------
    # Tool selection
    def select_tool(self, tool: Tool | str) -> None:
        tool = Tool(tool)
        if tool is Tool.ROTATE:
            self.rotate_quarter_turn()
            return
        self.active_tool = Tool.NONE if self.active_tool is tool else tool
        if tool is Tool.ADJUST and self.active_adjustment is None:
            self.active_adjustment = AdjustmentType.BRIGHTNESS
        else:
            self.active_adjustment = None

    def select_adjustment(self, kind: AdjustmentType | str) -> None:
        self.active_adjustment = AdjustmentType(kind)

    def update_active_adjustment(self, value: float) -> EditState:
        if self.active_adjustment is None:
            return self._state
        return self.set_adjustment_field(self.active_adjustment.field, value)

    # ------------------------------------------------------------------
    # Rendering
    def render_preview(self) -> PreviewFrame:
        """Apply rotation and crop only; the color transform is left to the viewer."""
        source = self._require_source()
        state = self._state
        rotated, rect = GeometryService.plan_for_state(source, state)
        return PreviewFrame(
            pixels=GeometryService.crop(rotated, rect),
            color_transform=ColorMatrixService.transform_for_state(state),
            crop_rect=rect,
            frame=rotated,
        )

    def export_flattened(self) -> np.ndarray:
        source = self._require_source()
        return flatten(source, self._state)

    def submit_export(self, executor: Executor) -> Future:
        """Flatten on ``executor`` using the state and image as they are right now."""
        source = self._require_source()
        state = self._state
        return executor.submit(flatten, source, state)
