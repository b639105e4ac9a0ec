"""
Adjustment / filter model for Cutout Studio.

Maps an AdjustmentState to an ordered list of tonal operations and applies
them to the RGB channels of an RGBA image. The operations follow the
semantics of the CSS filter functions (brightness, contrast, saturate,
sepia, hue-rotate), with each stage clamped to [0, 1] before the next one.
The optional tint is composited source-atop, so it only lands where the
image is opaque.

Example:
    >>> ops = build_tone_operations(AdjustmentState(contrast=20, saturation=-100))
    >>> [op.kind for op in ops]
    ['brightness', 'contrast', 'saturate']
    >>> filtered = apply_tone_operations(foreground, ops)
"""

import math
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

import numpy as np

from CS_Libs.constants import RASTER_MODE
from CS_Libs.ImageEditingLib.editor_models import AdjustmentState, RgbaColor
from CS_Libs.pillow_compat import Image

KIND_BRIGHTNESS = "brightness"
KIND_CONTRAST = "contrast"
KIND_SATURATE = "saturate"
KIND_SEPIA = "sepia"
KIND_HUE_ROTATE = "hue-rotate"
KIND_TINT = "tint"

# Rec. 709 luminance weights used by the CSS colour matrices
_LUM_R, _LUM_G, _LUM_B = 0.213, 0.715, 0.072


@dataclass(frozen=True)
class ToneOperation:
    """A single tonal operation.

    Attributes:
        kind: One of the KIND_* names
        amount: Multiplier, sepia amount or hue angle in degrees
        color: Overlay color for tint operations
    """
    kind: str
    amount: float = 0.0
    color: Optional[RgbaColor] = None

    def is_identity(self) -> bool:
        if self.kind in (KIND_BRIGHTNESS, KIND_CONTRAST, KIND_SATURATE):
            return self.amount == 1.0
        if self.kind in (KIND_SEPIA, KIND_HUE_ROTATE):
            return self.amount == 0.0
        if self.kind == KIND_TINT:
            return self.color is None or self.color[3] == 0
        return False


def build_tone_operations(adjustments: AdjustmentState) -> List[ToneOperation]:
    """
    Build the ordered operation list for an adjustment state.

    The three multipliers are always present so the list shape only depends
    on which optional sliders are active.

    Args:
        adjustments: Current slider values and tint

    Returns:
        List of ToneOperation in application order
    """
    a = adjustments
    operations = [
        ToneOperation(KIND_BRIGHTNESS, max(0.0, 1 + a.brightness / 100 + a.exposure / 100)),
        ToneOperation(KIND_CONTRAST, max(0.0, 1 + a.contrast / 100 + a.clarity / 300)),
        ToneOperation(KIND_SATURATE, max(0.0, 1 + a.saturation / 100 + a.vibrance / 200)),
    ]

    # Warmth is approximated by sepia; coolness by a small hue rotation
    if a.temperature > 0:
        operations.append(ToneOperation(KIND_SEPIA, a.temperature / 200))
    elif a.temperature < 0:
        operations.append(ToneOperation(KIND_HUE_ROTATE, a.temperature / 5))

    if a.hue_shift != 0:
        operations.append(ToneOperation(KIND_HUE_ROTATE, float(a.hue_shift)))

    if a.tint is not None:
        operations.append(ToneOperation(KIND_TINT, color=a.tint))

    return operations


def _saturate_matrix(s: float) -> np.ndarray:
    return np.array([
        [_LUM_R + (1 - _LUM_R) * s, _LUM_G - _LUM_G * s, _LUM_B - _LUM_B * s],
        [_LUM_R - _LUM_R * s, _LUM_G + (1 - _LUM_G) * s, _LUM_B - _LUM_B * s],
        [_LUM_R - _LUM_R * s, _LUM_G - _LUM_G * s, _LUM_B + (1 - _LUM_B) * s],
    ], dtype=np.float32)


def _sepia_matrix(amount: float) -> np.ndarray:
    inv = 1 - min(1.0, max(0.0, amount))
    return np.array([
        [0.393 + 0.607 * inv, 0.769 - 0.769 * inv, 0.189 - 0.189 * inv],
        [0.349 - 0.349 * inv, 0.686 + 0.314 * inv, 0.168 - 0.168 * inv],
        [0.272 - 0.272 * inv, 0.534 - 0.534 * inv, 0.131 + 0.869 * inv],
    ], dtype=np.float32)


def _hue_rotate_matrix(degrees: float) -> np.ndarray:
    rad = math.radians(degrees)
    c, s = math.cos(rad), math.sin(rad)
    return np.array([
        [_LUM_R + c * (1 - _LUM_R) - s * _LUM_R,
         _LUM_G - c * _LUM_G - s * _LUM_G,
         _LUM_B - c * _LUM_B + s * (1 - _LUM_B)],
        [_LUM_R - c * _LUM_R + s * 0.143,
         _LUM_G + c * (1 - _LUM_G) + s * 0.140,
         _LUM_B - c * _LUM_B - s * 0.283],
        [_LUM_R - c * _LUM_R - s * (1 - _LUM_R),
         _LUM_G - c * _LUM_G + s * _LUM_G,
         _LUM_B + c * (1 - _LUM_B) + s * _LUM_B],
    ], dtype=np.float32)


def _apply_single(rgb: np.ndarray, alpha: np.ndarray, op: ToneOperation) -> np.ndarray:
    if op.kind == KIND_BRIGHTNESS:
        result = rgb * np.float32(op.amount)
    elif op.kind == KIND_CONTRAST:
        result = (rgb - 0.5) * np.float32(op.amount) + 0.5
    elif op.kind == KIND_SATURATE:
        result = rgb @ _saturate_matrix(op.amount).T
    elif op.kind == KIND_SEPIA:
        result = rgb @ _sepia_matrix(op.amount).T
    elif op.kind == KIND_HUE_ROTATE:
        result = rgb @ _hue_rotate_matrix(op.amount).T
    elif op.kind == KIND_TINT:
        tint = np.array(op.color[:3], dtype=np.float32) / 255.0
        strength = np.float32(op.color[3] / 255.0)
        # source-atop: only where the destination (foreground) has coverage
        covered = (alpha > 0)[..., np.newaxis]
        blended = rgb * (1 - strength) + tint * strength
        result = np.where(covered, blended, rgb)
    else:
        raise ValueError(f"Unsupported tone operation: {op.kind}")
    return np.clip(result, 0.0, 1.0)


def apply_tone_operations(image: Any, operations: Sequence[ToneOperation]) -> Any:
    """
    Apply tonal operations to an image's color channels.

    Alpha is preserved exactly. When every operation is an identity the
    input is returned as an unmodified copy.

    Args:
        image: PIL Image (converted to RGBA)
        operations: Output of build_tone_operations()

    Returns:
        New RGBA PIL Image

    Raises:
        TypeError: If image is not a PIL Image
        ValueError: If an operation kind is unknown
    """
    if not hasattr(image, "mode"):
        raise TypeError(f"Expected PIL Image, got {type(image)}")

    img = image.convert(RASTER_MODE)
    active = [op for op in operations if not op.is_identity()]
    if not active:
        return img.copy()

    pixels = np.asarray(img, dtype=np.uint8)
    rgb = pixels[..., :3].astype(np.float32) / 255.0
    alpha = pixels[..., 3]

    for op in active:
        rgb = _apply_single(rgb, alpha, op)

    out = np.empty_like(pixels)
    out[..., :3] = np.rint(rgb * 255.0).astype(np.uint8)
    out[..., 3] = alpha
    return Image.fromarray(out)
