from __future__ import annotations

import math
from dataclasses import asdict, dataclass, fields, replace
from enum import Enum


class AdjustmentField(str, Enum):
    BRIGHTNESS = "brightness"
    CONTRAST = "contrast"
    SATURATION = "saturation"
    WARMTH = "warmth"
    ROTATION_DEGREES = "rotation_degrees"
    CROP_LEFT = "crop_left"
    CROP_TOP = "crop_top"
    CROP_RIGHT = "crop_right"
    CROP_BOTTOM = "crop_bottom"


class AdjustmentType(str, Enum):
    """The four slider-driven color adjustments."""

    BRIGHTNESS = "brightness"
    CONTRAST = "contrast"
    SATURATION = "saturation"
    WARMTH = "warmth"

    @property
    def field(self) -> AdjustmentField:
        return AdjustmentField(self.value)


class Tool(str, Enum):
    NONE = "none"
    CROP = "crop"
    ROTATE = "rotate"
    ADJUST = "adjust"


# (min, max) per clamped field; rotation is normalized instead
FIELD_RANGES: dict[str, tuple[float, float]] = {
    "brightness": (-1.0, 1.0),
    "contrast": (0.5, 1.5),
    "saturation": (0.0, 2.0),
    "warmth": (-1.0, 1.0),
    "crop_left": (0.0, 1.0),
    "crop_top": (0.0, 1.0),
    "crop_right": (0.0, 1.0),
    "crop_bottom": (0.0, 1.0),
}


def normalize_rotation(degrees: float) -> float:
    if not math.isfinite(degrees):
        return 0.0
    out = float(degrees) % 360.0
    # tiny negative inputs round up to exactly 360.0
    return 0.0 if out >= 360.0 else out


def _clamp(name: str, value: float, default: float) -> float:
    value = float(value)
    if math.isnan(value):
        return default
    lo, hi = FIELD_RANGES[name]
    return min(max(value, lo), hi)


@dataclass(frozen=True)
class EditState:
    """Immutable snapshot of every adjustment applied to the session image.

    Values are clamped (or, for rotation, normalized to ``[0, 360)``) as soon as a
    state is built, so a snapshot taken for history or export is always valid.
    """

    brightness: float = 0.0
    contrast: float = 1.0
    saturation: float = 1.0
    warmth: float = 0.0
    rotation_degrees: float = 0.0
    crop_left: float = 0.0
    crop_top: float = 0.0
    crop_right: float = 1.0
    crop_bottom: float = 1.0

    def __post_init__(self) -> None:
        for f in fields(self):
            raw = getattr(self, f.name)
            if f.name == "rotation_degrees":
                value = normalize_rotation(float(raw))
            else:
                value = _clamp(f.name, raw, f.default)
            object.__setattr__(self, f.name, value)

    def with_field(self, field: AdjustmentField | str, value: float) -> EditState:
        """Return a copy with ``field`` set to ``value``, clamped into its range."""
        try:
            name = AdjustmentField(field).value
        except ValueError as exc:
            raise ValueError(f"Unknown adjustment field: {field}") from exc
        return replace(self, **{name: float(value)})

    def with_crop(self, left: float, top: float, right: float, bottom: float) -> EditState:
        return (
            self.with_field(AdjustmentField.CROP_LEFT, left)
            .with_field(AdjustmentField.CROP_TOP, top)
            .with_field(AdjustmentField.CROP_RIGHT, right)
            .with_field(AdjustmentField.CROP_BOTTOM, bottom)
        )

    def adjustment(self, kind: AdjustmentType | str) -> float:
        return float(getattr(self, AdjustmentType(kind).value))

    @property
    def crop(self) -> tuple[float, float, float, float]:
        return (self.crop_left, self.crop_top, self.crop_right, self.crop_bottom)

    def to_dict(self) -> dict[str, float]:
        return asdict(self)
