"""
Crop / bake operation.

Cropping flattens everything currently visible (background, filtered and
tinted foreground, all under the view transform) into a new base raster,
then resets everything that was baked into it: the view transform goes back
to identity, a visible background layer is cleared and the adjustments
return to neutral. Rendering the post-crop state therefore reproduces the
extracted pixels exactly, with nothing applied twice. A hidden background
was not baked, so it is kept and can still be shown over the new canvas.

Functions:
    extract_region: Render the composite and cut out a rectangle
    crop: Bake a rectangle of the current composite into the session
"""

import logging
from typing import Any, Tuple

from CS_Libs.constants import MIN_CROP_SIZE
from CS_Libs.ImageEditingLib.compositor import compose
from CS_Libs.ImageEditingLib.editor_models import AdjustmentState, ViewTransform

logger = logging.getLogger(__name__)


def normalize_rect(x: float, y: float, w: float, h: float) -> Tuple[int, int, int, int]:
    return round(x), round(y), round(w), round(h)


def extract_region(state: Any, x: int, y: int, w: int, h: int) -> Any:
    """
    Render the full composite without UI overlays and cut out (x, y, w, h).

    Parts of the rectangle outside the canvas come out transparent, so the
    result is always exactly w x h.
    """
    snapshot = compose(state, include_overlay=False)
    return snapshot.crop((x, y, x + w, y + h))


def crop(session: Any, x: float, y: float, w: float, h: float) -> bool:
    """
    Bake the canvas-surface rectangle (x, y, w, h) into a new base raster.

    Args:
        session: EditorSession to modify
        x, y, w, h: Rectangle in canvas-surface coordinates (rounded)

    Returns:
        True if the crop was applied, False if it was ignored (rectangle too
        small, nothing loaded, or segmentation in flight)
    """
    x, y, w, h = normalize_rect(x, y, w, h)
    if not (w > MIN_CROP_SIZE and h > MIN_CROP_SIZE):
        logger.debug(f"Ignoring crop below minimum size: {w}x{h}")
        return False
    if session.foreground is None:
        logger.debug("Ignoring crop: no image loaded")
        return False
    if not session.ensure_idle("crop"):
        return False

    baked = extract_region(session, x, y, w, h)

    session.foreground.replace(baked)
    session.source_image = baked.copy()
    session.canvas_size = (w, h)
    session.view = ViewTransform.identity()
    if session.show_background:
        session.background = None
    session.adjustments = AdjustmentState()
    session.bump_generation()

    logger.info(f"Cropped to ({x}, {y}, {w}, {h})")
    return True
