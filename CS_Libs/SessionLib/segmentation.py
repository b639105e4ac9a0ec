"""
Segmentation hand-off (background removal).

The segmentation model is an opaque provider: it receives the retained
source image and returns one foreground confidence per pixel, row-major.
This module thresholds that mask into a new foreground raster.

The provider call is the only suspension point of the editing core. While
it is outstanding the session is busy: raster mutations and a second
segmentation are rejected. A raster generation token taken before the call
makes sure a result that arrives after the raster was replaced by newer
work (e.g. a fresh image load) is discarded instead of overwriting it.
"""

import inspect
import logging
from typing import Any, Protocol, Sequence

from CS_Libs.constants import HISTORY_LABEL_BG_REMOVED, STRICT_MASK_THRESHOLD
from CS_Libs.errors import ProviderFailure
from CS_Libs.ImageEditingLib.foreground_raster import ForegroundRaster, apply_confidence_mask

logger = logging.getLogger(__name__)


class SegmentationProvider(Protocol):
    """Anything with a segment() method; it may be sync or async."""

    def segment(self, image: Any) -> Any:
        """Return width*height confidences in [0, 1] (or an awaitable of them)."""
        ...


async def _run_provider(provider: SegmentationProvider, image: Any) -> Sequence[float]:
    try:
        result = provider.segment(image)
        if inspect.isawaitable(result):
            result = await result
    except ProviderFailure:
        raise
    except Exception as exc:
        raise ProviderFailure(f"segmentation provider failed: {exc}") from exc
    if result is None:
        raise ProviderFailure("segmentation provider returned no mask")
    return result


async def remove_background(
    session: Any,
    provider: SegmentationProvider,
    threshold: float = STRICT_MASK_THRESHOLD,
    label: str = HISTORY_LABEL_BG_REMOVED,
) -> bool:
    """
    Replace the foreground with the thresholded cut-out of the source image.

    Args:
        session: EditorSession to modify
        provider: Segmentation provider
        threshold: Confidence below which a pixel is discarded
        label: History label for the checkpoint

    Returns:
        True if the foreground was replaced. False when nothing is loaded,
        another request is in flight, the provider failed (a notice is
        recorded), or the result went stale while waiting.
    """
    if session.source_image is None:
        logger.debug("Ignoring background removal: no image loaded")
        return False
    if not session.ensure_idle("background removal"):
        return False

    source = session.source_image.copy()
    generation = session.raster_generation
    session.segmentation_in_flight = True
    try:
        confidences = await _run_provider(provider, source)
        cutout = apply_confidence_mask(source, confidences, threshold)
    except ProviderFailure as exc:
        logger.error(f"Background removal failed: {exc}")
        session.notify("error", "Background segmentation failed.")
        return False
    finally:
        session.segmentation_in_flight = False

    if session.raster_generation != generation:
        logger.warning("Discarding stale segmentation result: raster changed while waiting")
        return False

    session.foreground = ForegroundRaster(cutout)
    session.canvas_size = cutout.size
    session.bump_generation()
    session.checkpoint(label)
    logger.info(f"Background removed at threshold {threshold}")
    return True
