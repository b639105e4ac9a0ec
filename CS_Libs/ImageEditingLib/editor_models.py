"""
Editor data models for Cutout Studio.

This module defines the core data structures shared by the rendering,
transform and session code.

Classes:
    Point: A 2D point in any of the editor's coordinate spaces
    ViewTransform: Scale / pan / quarter-turn rotation / horizontal flip of the view
    AdjustmentState: Nondestructive tonal slider values plus optional tint
    BackgroundSpec: Flat colour or image background with its own placement
    CropRegion: Rectangle in canvas-surface coordinates during a crop drag

Type Aliases:
    RgbaColor: A tuple of 4 integers representing RGBA color values (0-255)
"""

from dataclasses import dataclass, field, fields, replace
from typing import Any, Optional, Tuple

from CS_Libs.constants import ALLOWED_ROTATIONS, MIN_CROP_SIZE

RgbaColor = Tuple[int, int, int, int]


def validate_rgba(color: Any, name: str = "color") -> RgbaColor:
    """
    Check and normalize an RGBA color tuple.

    Args:
        color: Sequence of 4 integers in 0-255
        name: Field name used in error messages

    Returns:
        The color as a tuple of ints

    Raises:
        ValueError: If the color does not have 4 components in range
    """
    values = tuple(int(c) for c in color)
    if len(values) != 4:
        raise ValueError(f"{name} must have 4 components (RGBA), got {color!r}")
    if any(c < 0 or c > 255 for c in values):
        raise ValueError(f"{name} components must be 0-255, got {color!r}")
    return values


@dataclass(frozen=True)
class Point:
    x: float
    y: float

    def __iter__(self):
        yield self.x
        yield self.y


@dataclass(frozen=True)
class ViewTransform:
    """View transform applied at render time without touching pixel data.

    Attributes:
        scale: Zoom factor, strictly positive
        offset_x: Horizontal pan in canvas pixels
        offset_y: Vertical pan in canvas pixels
        rotation_deg: Quarter-turn rotation (0, 90, 180 or 270)
        flipped: Horizontal mirror
    """
    scale: float = 1.0
    offset_x: float = 0.0
    offset_y: float = 0.0
    rotation_deg: int = 0
    flipped: bool = False

    def __post_init__(self):
        if not self.scale > 0:
            raise ValueError(f"scale must be > 0, got {self.scale}")
        if self.rotation_deg not in ALLOWED_ROTATIONS:
            raise ValueError(
                f"rotation_deg must be one of {ALLOWED_ROTATIONS}, got {self.rotation_deg}"
            )

    @classmethod
    def identity(cls) -> "ViewTransform":
        return cls()

    def is_identity(self) -> bool:
        return self == ViewTransform.identity()

    def with_changes(self, **changes: Any) -> "ViewTransform":
        return replace(self, **changes)


@dataclass(frozen=True)
class AdjustmentState:
    """Tonal adjustment sliders.

    brightness, contrast, saturation, exposure, vibrance, clarity and
    temperature are slider units (roughly -100..100). hue_shift is in
    degrees. tint is an RGBA overlay color whose alpha is the overlay
    strength, or None.
    """
    brightness: float = 0.0
    contrast: float = 0.0
    saturation: float = 0.0
    tint: Optional[RgbaColor] = None
    exposure: float = 0.0
    vibrance: float = 0.0
    clarity: float = 0.0
    temperature: float = 0.0
    hue_shift: float = 0.0

    def __post_init__(self):
        if self.tint is not None:
            object.__setattr__(self, "tint", validate_rgba(self.tint, "tint"))

    @classmethod
    def slider_names(cls) -> Tuple[str, ...]:
        return tuple(f.name for f in fields(cls) if f.name != "tint")

    def is_neutral(self) -> bool:
        return self == AdjustmentState()

    def with_changes(self, **changes: Any) -> "AdjustmentState":
        return replace(self, **changes)


@dataclass(frozen=True)
class BackgroundSpec:
    """Replacement background layer.

    Exactly one of color or image is set. Image backgrounds carry their own
    placement, applied before the view transform.
    """
    color: Optional[RgbaColor] = None
    image: Optional[Any] = field(default=None, compare=False)
    scale: float = 1.0
    offset_x: float = 0.0
    offset_y: float = 0.0

    def __post_init__(self):
        if (self.color is None) == (self.image is None):
            raise ValueError("BackgroundSpec needs exactly one of color or image")
        if self.color is not None:
            object.__setattr__(self, "color", validate_rgba(self.color, "color"))
        if self.image is not None and not hasattr(self.image, "mode"):
            raise TypeError(f"Expected PIL Image for background, got {type(self.image)}")
        if not self.scale > 0:
            raise ValueError(f"background scale must be > 0, got {self.scale}")

    @classmethod
    def solid(cls, color: RgbaColor) -> "BackgroundSpec":
        return cls(color=color)

    @classmethod
    def from_image(cls, image: Any) -> "BackgroundSpec":
        return cls(image=image.convert("RGBA"))

    @property
    def is_image(self) -> bool:
        return self.image is not None

    def with_placement(self, scale: float, offset_x: float, offset_y: float) -> "BackgroundSpec":
        return replace(self, scale=scale, offset_x=offset_x, offset_y=offset_y)


@dataclass(frozen=True)
class CropRegion:
    x: float
    y: float
    w: float
    h: float

    @classmethod
    def from_corners(cls, anchor: Point, current: Point) -> "CropRegion":
        return cls(
            x=min(anchor.x, current.x),
            y=min(anchor.y, current.y),
            w=abs(current.x - anchor.x),
            h=abs(current.y - anchor.y),
        )

    def rounded(self) -> Tuple[int, int, int, int]:
        return round(self.x), round(self.y), round(self.w), round(self.h)

    def is_committable(self) -> bool:
        """Drags of MIN_CROP_SIZE pixels or less are treated as accidental."""
        return self.w > MIN_CROP_SIZE and self.h > MIN_CROP_SIZE
