"""
Compositor for Cutout Studio.

Renders the editor state into an RGBA raster in a fixed order:

1. Clear to transparent
2. Background layer (flat color fills the surface; an image background is
   placed by its own scale/offset, centred on the canvas, and warped by
   the view transform in one resampling pass)
3. Tonal operations built from the adjustment state
4. Foreground raster at its native placement, warped by the view transform
5. Tint, restricted to the foreground's alpha
6. Filters are scoped to the foreground layer only
7. Crop outline in untransformed surface coordinates (UI affordance)

Rendering is a pure function of the state: identical state gives identical
bytes.

Example:
    >>> surface = Image.new("RGBA", session.canvas_size)
    >>> render(surface, session)
"""

from dataclasses import dataclass
from typing import Any, Optional, Protocol, Tuple

from CS_Libs.constants import (
    CROP_OUTLINE_COLOR,
    CROP_OUTLINE_WIDTH,
    RASTER_MODE,
    TRANSPARENT,
)
from CS_Libs.ImageEditingLib.adjustment_filters import (
    apply_tone_operations,
    build_tone_operations,
)
from CS_Libs.ImageEditingLib.editor_models import (
    AdjustmentState,
    BackgroundSpec,
    CropRegion,
    Point,
    ViewTransform,
)
from CS_Libs.ImageEditingLib.transform_math import (
    canvas_center,
    layer_affine_coefficients,
    pillow_affine_coefficients,
)
from CS_Libs.pillow_compat import Image, ImageDraw


class RenderState(Protocol):
    """The parts of the editor state the compositor reads."""

    canvas_size: Tuple[int, int]
    view: ViewTransform
    adjustments: AdjustmentState
    background: Optional[BackgroundSpec]
    show_background: bool

    @property
    def foreground_image(self) -> Optional[Any]: ...

    @property
    def crop_region(self) -> Optional[CropRegion]: ...


@dataclass(frozen=True)
class FrameState:
    """Plain render state, useful for rendering outside a session."""
    canvas_size: Tuple[int, int]
    foreground_image: Optional[Any] = None
    view: ViewTransform = ViewTransform()
    adjustments: AdjustmentState = AdjustmentState()
    background: Optional[BackgroundSpec] = None
    show_background: bool = True
    crop_region: Optional[CropRegion] = None


def warp_layer(layer: Any, view: ViewTransform, canvas_size: Tuple[int, int]) -> Any:
    """
    Warp a canvas-sized layer by the view transform.

    Identity transforms are copied without resampling so unwarped content
    stays bit-exact.

    Args:
        layer: RGBA PIL Image in canvas (pre-view) coordinates
        view: View transform to apply
        canvas_size: (width, height) of the output

    Returns:
        RGBA PIL Image of canvas_size
    """
    if view.is_identity() and layer.size == canvas_size:
        return layer.copy()
    coefficients = pillow_affine_coefficients(view, canvas_center(canvas_size))
    return layer.transform(
        canvas_size,
        Image.Transform.AFFINE,
        coefficients,
        resample=Image.Resampling.NEAREST,
        fillcolor=TRANSPARENT,
    )


def _place_on_canvas(image: Any, canvas_size: Tuple[int, int], box: Tuple[int, int]) -> Any:
    layer = Image.new(RASTER_MODE, canvas_size, TRANSPARENT)
    layer.paste(image, box)
    return layer


def background_layer(
    background: BackgroundSpec,
    canvas_size: Tuple[int, int],
    view: ViewTransform = ViewTransform(),
) -> Any:
    """
    Draw the image background onto the canvas under the view transform.

    The image is scaled by its own scale, centred on the canvas and shifted
    by its own offset, then warped by the view in the same resampling pass.
    The whole source image is sampled, so zooming out or rotating a
    non-square canvas reveals background beyond the canvas rectangle.
    """
    src = background.image
    coefficients = layer_affine_coefficients(
        view,
        canvas_center(canvas_size),
        background.scale,
        Point(background.offset_x, background.offset_y),
        src.size,
        canvas_size,
    )
    resample = Image.Resampling.NEAREST if background.scale == 1.0 else Image.Resampling.BILINEAR
    return src.transform(
        canvas_size,
        Image.Transform.AFFINE,
        coefficients,
        resample=resample,
        fillcolor=TRANSPARENT,
    )


def compose(state: RenderState, include_overlay: bool = True) -> Any:
    """
    Render the full composite for the given state.

    Args:
        state: Editor state (an EditorSession or a FrameState)
        include_overlay: Draw the crop outline when a crop drag is active

    Returns:
        New RGBA PIL Image of state.canvas_size
    """
    canvas_size = tuple(state.canvas_size)
    frame = Image.new(RASTER_MODE, canvas_size, TRANSPARENT)

    background = state.background
    if state.show_background and background is not None:
        if background.is_image:
            layer = background_layer(background, canvas_size, state.view)
            frame = Image.alpha_composite(frame, layer)
        else:
            frame = Image.new(RASTER_MODE, canvas_size, background.color)

    foreground = state.foreground_image
    if foreground is not None:
        operations = build_tone_operations(state.adjustments)
        filtered = apply_tone_operations(foreground, operations)
        if filtered.size != canvas_size:
            filtered = _place_on_canvas(filtered, canvas_size, (0, 0))
        frame = Image.alpha_composite(frame, warp_layer(filtered, state.view, canvas_size))

    region = state.crop_region
    if include_overlay and region is not None:
        draw = ImageDraw.Draw(frame)
        x, y, w, h = region.rounded()
        draw.rectangle(
            [x, y, x + w, y + h],
            outline=CROP_OUTLINE_COLOR,
            width=CROP_OUTLINE_WIDTH,
        )

    return frame


def render(surface: Any, state: RenderState) -> None:
    """
    Render the state into a caller-owned surface in place.

    Args:
        surface: RGBA PIL Image whose size equals state.canvas_size

    Raises:
        ValueError: If the surface size does not match the canvas
    """
    if tuple(surface.size) != tuple(state.canvas_size):
        raise ValueError(
            f"surface size {surface.size} does not match canvas {state.canvas_size}"
        )
    surface.paste(compose(state), (0, 0))
