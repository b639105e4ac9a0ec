"""
View transform math for Cutout Studio.

Pure functions mapping points between the on-screen canvas surface and the
foreground-local raster space. The same matrices drive both rendering (via
Pillow's affine resampling) and pointer mapping, so a brush stamp always
lands on the pixel that is displayed under the pointer.

The forward transform is the composition

    translate(center + offset) . scale(scale * flip, scale) . rotate(deg) . translate(-center)

which, applied to a point p, gives ``q = c + o + S.R.(p - c)``.

Functions:
    forward_matrix: 3x3 affine matrix for raster -> screen
    inverse_matrix: 3x3 affine matrix for screen -> raster
    forward: Map a raster point to the canvas surface
    inverse: Map a canvas surface point back to the raster
    pillow_affine_coefficients: Output->input coefficients for Image.transform
    placement_matrix: Image -> canvas matrix for a layer with its own placement
    layer_affine_coefficients: Output->input coefficients for a placed layer under the view
    clamp_scale: Clamp a zoom factor to the allowed range
    canvas_center: Centre of a canvas of a given size
"""

from typing import Dict, Tuple

import numpy as np

from CS_Libs.constants import MAX_VIEW_SCALE, MIN_VIEW_SCALE
from CS_Libs.ImageEditingLib.editor_models import Point, ViewTransform

# Exact (cos, sin) for the quarter turns
_RIGHT_ANGLES: Dict[int, Tuple[int, int]] = {
    0: (1, 0),
    90: (0, 1),
    180: (-1, 0),
    270: (0, -1),
}


def clamp_scale(value: float) -> float:
    """Clamp a zoom factor into [MIN_VIEW_SCALE, MAX_VIEW_SCALE]."""
    return max(MIN_VIEW_SCALE, min(MAX_VIEW_SCALE, float(value)))


def canvas_center(size: Tuple[int, int]) -> Point:
    width, height = size
    return Point(width / 2.0, height / 2.0)


def _translation(tx: float, ty: float) -> np.ndarray:
    return np.array([[1.0, 0.0, tx], [0.0, 1.0, ty], [0.0, 0.0, 1.0]])


def _rotation(degrees: int) -> np.ndarray:
    cos_a, sin_a = _RIGHT_ANGLES[degrees % 360]
    return np.array([[cos_a, -sin_a, 0.0], [sin_a, cos_a, 0.0], [0.0, 0.0, 1.0]])


def _scaling(sx: float, sy: float) -> np.ndarray:
    return np.array([[sx, 0.0, 0.0], [0.0, sy, 0.0], [0.0, 0.0, 1.0]])


def _signed_scale(view: ViewTransform) -> Tuple[float, float]:
    return view.scale * (-1.0 if view.flipped else 1.0), view.scale


def forward_matrix(view: ViewTransform, center: Point) -> np.ndarray:
    """
    Build the raster -> screen affine matrix.

    Args:
        view: Current view transform
        center: Canvas centre the rotation and scale pivot around

    Returns:
        3x3 numpy array in homogeneous coordinates
    """
    sx, sy = _signed_scale(view)
    return (
        _translation(center.x + view.offset_x, center.y + view.offset_y)
        @ _scaling(sx, sy)
        @ _rotation(view.rotation_deg)
        @ _translation(-center.x, -center.y)
    )


def inverse_matrix(view: ViewTransform, center: Point) -> np.ndarray:
    """
    Build the screen -> raster affine matrix as the exact algebraic inverse.

    Un-translate by centre plus offset, divide by the signed scale (a flip is
    its own inverse), rotate by -rotation_deg, translate back by the centre.
    """
    sx, sy = _signed_scale(view)
    return (
        _translation(center.x, center.y)
        @ _rotation(-view.rotation_deg)
        @ _scaling(1.0 / sx, 1.0 / sy)
        @ _translation(-(center.x + view.offset_x), -(center.y + view.offset_y))
    )


def _apply(matrix: np.ndarray, point: Point) -> Point:
    x, y, _ = matrix @ np.array([point.x, point.y, 1.0])
    return Point(float(x), float(y))


def forward(point: Point, view: ViewTransform, center: Point) -> Point:
    """Map a foreground-local raster point to canvas-surface coordinates."""
    return _apply(forward_matrix(view, center), point)


def inverse(point: Point, view: ViewTransform, center: Point) -> Point:
    """Map a canvas-surface point (e.g. a pointer sample) into raster coordinates."""
    return _apply(inverse_matrix(view, center), point)


def pillow_affine_coefficients(
    view: ViewTransform, center: Point
) -> Tuple[float, float, float, float, float, float]:
    """
    Coefficients for ``Image.transform(size, Image.Transform.AFFINE, data)``.

    Pillow samples the input at ``(a*x + b*y + c, d*x + e*y + f)`` for each
    output pixel (x, y), which is exactly the inverse mapping.
    """
    m = inverse_matrix(view, center)
    return (
        float(m[0, 0]), float(m[0, 1]), float(m[0, 2]),
        float(m[1, 0]), float(m[1, 1]), float(m[1, 2]),
    )


def placement_matrix(
    scale: float, offset: Point, source_size: Tuple[int, int], canvas_size: Tuple[int, int]
) -> np.ndarray:
    """
    Build the image -> canvas matrix for a layer with its own placement.

    The source is scaled, centred on the canvas and then shifted by offset.
    """
    src_w, src_h = source_size
    width, height = canvas_size
    return _translation(
        offset.x - (src_w * scale - width) / 2.0,
        offset.y - (src_h * scale - height) / 2.0,
    ) @ _scaling(scale, scale)


def layer_affine_coefficients(
    view: ViewTransform,
    center: Point,
    scale: float,
    offset: Point,
    source_size: Tuple[int, int],
    canvas_size: Tuple[int, int],
) -> Tuple[float, float, float, float, float, float]:
    """
    Output->input coefficients for a placed layer drawn under the view.

    Composes the inverse placement with the inverse view so the source image
    is resampled once, with nothing clipped to the canvas before the warp.
    """
    m = np.linalg.inv(placement_matrix(scale, offset, source_size, canvas_size)) @ inverse_matrix(view, center)
    return (
        float(m[0, 0]), float(m[0, 1]), float(m[0, 2]),
        float(m[1, 0]), float(m[1, 1]), float(m[1, 2]),
    )
