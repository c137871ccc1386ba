from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from lumiq.domain.entities.edit_state import EditState

# Perceptual luma weights shared by the preview filter and the export bake
LUMA_R = 0.213
LUMA_G = 0.715
LUMA_B = 0.072


@dataclass(frozen=True)
class ColorTransform:
    """Row-major 4x4 affine transform over ``[R, G, B, 1]`` in the 0..255 domain.

    The last column holds the per-channel offsets. Alpha is not part of the
    matrix and is always passed through unchanged.
    """

    values: tuple[float, ...]

    @classmethod
    def from_matrix(cls, matrix: np.ndarray) -> ColorTransform:
        return cls(values=tuple(float(v) for v in np.asarray(matrix, dtype=np.float64).ravel()))

    @classmethod
    def identity(cls) -> ColorTransform:
        return cls.from_matrix(np.eye(4))

    @property
    def matrix(self) -> np.ndarray:
        return np.array(self.values, dtype=np.float64).reshape(4, 4)

    def is_identity(self) -> bool:
        return bool(np.allclose(self.matrix, np.eye(4)))

    def to_list(self) -> list[float]:
        return list(self.values)


class ColorMatrixService:
    """Builds and applies the combined color adjustment matrix.

    Composition order is fixed: saturation first, then brightness/contrast,
    then warmth. As matrices acting on a column vector that is ``W @ B @ S``.
    """

    # R' = c*R + (1 - c)*128 + b*255 (same for G, B)
    @staticmethod
    def brightness_contrast_matrix(brightness: float, contrast: float) -> np.ndarray:
        c = float(contrast)
        offset = (1.0 - c) * 128.0 + float(brightness) * 255.0
        m = np.eye(4, dtype=np.float64)
        m[0, 0] = m[1, 1] = m[2, 2] = c
        m[:3, 3] = offset
        return m

    # Luminance-preserving saturation: s=1 identity, s=0 luma grayscale
    @staticmethod
    def saturation_matrix(saturation: float) -> np.ndarray:
        s = float(saturation)
        inv = 1.0 - s
        luma = np.array([LUMA_R, LUMA_G, LUMA_B], dtype=np.float64)
        m = np.eye(4, dtype=np.float64)
        m[:3, :3] = inv * np.tile(luma, (3, 1)) + s * np.eye(3)
        return m

    # Warm: +50w red, +25w green. Cool: +50|w| blue.
    @staticmethod
    def warmth_matrix(warmth: float) -> np.ndarray:
        w = float(warmth)
        m = np.eye(4, dtype=np.float64)
        if w > 0:
            m[0, 3] = w * 50.0
            m[1, 3] = w * 25.0
        elif w < 0:
            m[2, 3] = -w * 50.0
        return m

    @staticmethod
    def build_color_transform(
        brightness: float, contrast: float, saturation: float, warmth: float
    ) -> ColorTransform:
        s = ColorMatrixService.saturation_matrix(saturation)
        b = ColorMatrixService.brightness_contrast_matrix(brightness, contrast)
        w = ColorMatrixService.warmth_matrix(warmth)
        return ColorTransform.from_matrix(w @ b @ s)

    @staticmethod
    def transform_for_state(state: EditState) -> ColorTransform:
        return ColorMatrixService.build_color_transform(
            state.brightness, state.contrast, state.saturation, state.warmth
        )

    @staticmethod
    def apply_color_transform(pixels: np.ndarray, transform: ColorTransform) -> np.ndarray:
        """Bake ``transform`` into a new RGBA uint8 buffer."""
        src = np.asarray(pixels)
        m = transform.matrix
        rgb = src[..., :3].astype(np.float64)
        out_rgb = rgb @ m[:3, :3].T + m[:3, 3]
        out = np.empty_like(src, dtype=np.uint8)
        out[..., :3] = np.rint(np.clip(out_rgb, 0.0, 255.0)).astype(np.uint8)
        out[..., 3] = src[..., 3]
        return out
