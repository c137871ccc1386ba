from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from lumiq.domain.entities.edit_state import EditState, normalize_rotation


@dataclass(frozen=True)
class CropRect:
    x: int
    y: int
    width: int
    height: int


class GeometryService:
    """Rotate-then-crop geometry shared by the preview and export paths.

    Buffers are ``(H, W, C)`` arrays. Every result is freshly allocated, never a
    view into the source.
    """

    @staticmethod
    def rotated_size(width: int, height: int, degrees: float) -> tuple[int, int]:
        deg = normalize_rotation(degrees)
        if deg % 90.0 == 0.0:
            return (height, width) if int(deg // 90.0) % 2 else (width, height)
        rad = math.radians(deg)
        cos_a = abs(math.cos(rad))
        sin_a = abs(math.sin(rad))
        new_w = int(math.ceil(width * cos_a + height * sin_a - 1e-9))
        new_h = int(math.ceil(width * sin_a + height * cos_a - 1e-9))
        return max(1, new_w), max(1, new_h)

    # Clockwise rotation about the center; output grows to fit the rotated bounds.
    @staticmethod
    def rotate(pixels: np.ndarray, degrees: float) -> np.ndarray:
        src = np.asarray(pixels)
        deg = normalize_rotation(degrees)
        if deg % 90.0 == 0.0:
            quarter_turns = int(deg // 90.0)
            return np.rot90(src, k=-quarter_turns).copy()

        h, w = src.shape[:2]
        new_w, new_h = GeometryService.rotated_size(w, h, deg)
        out = np.zeros((new_h, new_w) + src.shape[2:], dtype=src.dtype)
        rad = np.deg2rad(deg)
        cos_a = np.cos(rad)
        sin_a = np.sin(rad)
        cx = (w - 1) / 2.0
        cy = (h - 1) / 2.0
        ncx = (new_w - 1) / 2.0
        ncy = (new_h - 1) / 2.0
        # For each destination pixel, map back to source
        ys, xs = np.indices((new_h, new_w))
        x_rel = xs - ncx
        y_rel = ys - ncy
        x_src = cos_a * x_rel + sin_a * y_rel + cx
        y_src = -sin_a * x_rel + cos_a * y_rel + cy
        x_src_round = np.rint(x_src).astype(int)
        y_src_round = np.rint(y_src).astype(int)
        valid = (x_src_round >= 0) & (x_src_round < w) & (y_src_round >= 0) & (y_src_round < h)
        out[valid] = src[y_src_round[valid], x_src_round[valid]]
        return out

    @staticmethod
    def crop_rect(
        width: int, height: int, left: float, top: float, right: float, bottom: float
    ) -> CropRect:
        """Map a normalized crop box onto a ``width`` x ``height`` image.

        All conversions truncate toward zero. The box is then clamped to stay
        inside the image and to cover at least one pixel.
        """
        x = int(left * width)
        y = int(top * height)
        crop_w = max(1, int((right - left) * width))
        crop_h = max(1, int((bottom - top) * height))
        x = min(max(x, 0), width - 1)
        y = min(max(y, 0), height - 1)
        crop_w = min(crop_w, width - x)
        crop_h = min(crop_h, height - y)
        return CropRect(x=x, y=y, width=crop_w, height=crop_h)

    @staticmethod
    def crop(pixels: np.ndarray, rect: CropRect) -> np.ndarray:
        src = np.asarray(pixels)
        return src[rect.y : rect.y + rect.height, rect.x : rect.x + rect.width].copy()

    @staticmethod
    def apply_geometry(
        source: np.ndarray,
        rotation_degrees: float,
        crop_left: float,
        crop_top: float,
        crop_right: float,
        crop_bottom: float,
    ) -> np.ndarray:
        rotated = GeometryService.rotate(source, rotation_degrees)
        h, w = rotated.shape[:2]
        rect = GeometryService.crop_rect(w, h, crop_left, crop_top, crop_right, crop_bottom)
        return GeometryService.crop(rotated, rect)

    @staticmethod
    def plan_for_state(source: np.ndarray, state: EditState) -> tuple[np.ndarray, CropRect]:
        """Rotate ``source`` for ``state`` and return it with the crop rectangle to cut."""
        rotated = GeometryService.rotate(source, state.rotation_degrees)
        h, w = rotated.shape[:2]
        return rotated, GeometryService.crop_rect(w, h, *state.crop)

    @staticmethod
    def apply_state(source: np.ndarray, state: EditState) -> np.ndarray:
        return GeometryService.apply_geometry(source, state.rotation_degrees, *state.crop)
