"""
Foreground raster store and brush engine.

The ForegroundRaster is the cut-out subject being edited: an RGBA buffer
whose alpha channel carries the cut-out. Brush stamps are the only
operations that patch it in place; background removal, crop and undo
replace it wholesale.

A stamp covers every pixel whose centre (i + 0.5, j + 0.5) lies within the
brush radius of the stamp point. Strokes are a sequence of independent
stamps, one per pointer sample, with no interpolation in between.
"""

import logging
from enum import Enum
from typing import Any, Optional, Sequence, Tuple

import numpy as np

from CS_Libs.constants import BRUSH_SIZE_STEP, MIN_BRUSH_SIZE, RASTER_MODE
from CS_Libs.errors import DegenerateInput, ProviderFailure, UnsupportedRestore
from CS_Libs.ImageEditingLib.editor_models import Point, RgbaColor, validate_rgba
from CS_Libs.pillow_compat import Image

logger = logging.getLogger(__name__)


class BrushMode(Enum):
    ERASE = "erase"
    PAINT = "paint"
    RESTORE = "restore"


def adjust_brush_size(size: int, direction: int) -> int:
    """
    Step the brush size up or down.

    Args:
        size: Current brush diameter in pixels
        direction: Positive to grow, negative to shrink, 0 for no change

    Returns:
        New size, never below MIN_BRUSH_SIZE
    """
    if direction > 0:
        size += BRUSH_SIZE_STEP
    elif direction < 0:
        size -= BRUSH_SIZE_STEP
    return max(MIN_BRUSH_SIZE, size)


def disc_mask(
    shape: Tuple[int, int], center: Point, radius: float
) -> Optional[Tuple[Tuple[slice, slice], np.ndarray]]:
    """
    Compute the pixels covered by a disc.

    Args:
        shape: (height, width) of the raster
        center: Disc centre in raster coordinates
        radius: Disc radius in pixels

    Returns:
        (window, mask) where window is the (rows, cols) slice bounding the
        disc clipped to the raster and mask is a boolean array for that
        window, or None when the disc covers no pixel.

    Raises:
        DegenerateInput: If radius is not positive
    """
    if radius <= 0:
        raise DegenerateInput(f"brush radius must be > 0, got {radius}")

    height, width = shape
    x0 = max(0, int(np.floor(center.x - radius)))
    x1 = min(width, int(np.ceil(center.x + radius)) + 1)
    y0 = max(0, int(np.floor(center.y - radius)))
    y1 = min(height, int(np.ceil(center.y + radius)) + 1)
    if x0 >= x1 or y0 >= y1:
        return None

    xs = np.arange(x0, x1, dtype=np.float64) + 0.5
    ys = np.arange(y0, y1, dtype=np.float64) + 0.5
    dx = xs[np.newaxis, :] - center.x
    dy = ys[:, np.newaxis] - center.y
    mask = dx * dx + dy * dy <= radius * radius
    if not mask.any():
        return None
    return (slice(y0, y1), slice(x0, x1)), mask


class ForegroundRaster:
    """Mutable RGBA raster of the cut-out subject."""

    def __init__(self, image: Any):
        if not hasattr(image, "mode"):
            raise TypeError(f"Expected PIL Image, got {type(image)}")
        self._image = image.convert(RASTER_MODE)

    @classmethod
    def blank(cls, width: int, height: int) -> "ForegroundRaster":
        return cls(Image.new(RASTER_MODE, (width, height), (0, 0, 0, 0)))

    @property
    def image(self) -> Any:
        return self._image

    @property
    def size(self) -> Tuple[int, int]:
        return self._image.size

    @property
    def width(self) -> int:
        return self._image.width

    @property
    def height(self) -> int:
        return self._image.height

    def copy(self) -> "ForegroundRaster":
        return ForegroundRaster(self._image.copy())

    def replace(self, image: Any) -> None:
        """Swap in a new raster wholesale."""
        if not hasattr(image, "mode"):
            raise TypeError(f"Expected PIL Image, got {type(image)}")
        self._image = image.convert(RASTER_MODE)

    def alpha_array(self) -> np.ndarray:
        return np.asarray(self._image.getchannel("A"))

    def stamp(
        self,
        point: Point,
        radius: float,
        mode: BrushMode,
        color: Optional[RgbaColor] = None,
        source: Optional[Any] = None,
    ) -> bool:
        """
        Apply one brush disc at a raster-local point.

        Args:
            point: Stamp centre in raster coordinates
            radius: Disc radius (brush size / 2)
            mode: ERASE clears alpha, PAINT writes the opaque color,
                  RESTORE copies pixels back from source
            color: Paint color (alpha is forced opaque)
            source: Un-erased source image, required by RESTORE

        Returns:
            True if any pixel was written, False for a no-op
        """
        try:
            covered = disc_mask((self.height, self.width), point, radius)
            if covered is None:
                return False
            window, mask = covered
            pixels = np.array(self._image, dtype=np.uint8)
            region = pixels[window]

            if mode is BrushMode.ERASE:
                region[..., 3][mask] = 0
            elif mode is BrushMode.PAINT:
                if color is None:
                    raise ValueError("PAINT mode needs a color")
                r, g, b, _ = validate_rgba(color)
                region[mask] = (r, g, b, 255)
            elif mode is BrushMode.RESTORE:
                region[mask] = self._restore_source(source)[window][mask]
            else:
                raise ValueError(f"Unsupported brush mode: {mode}")
        except DegenerateInput as exc:
            logger.debug(f"Ignoring brush stamp: {exc}")
            return False
        except UnsupportedRestore as exc:
            logger.warning(f"Restore brush unavailable: {exc}")
            return False

        self._image = Image.fromarray(pixels)
        return True

    def _restore_source(self, source: Optional[Any]) -> np.ndarray:
        if source is None:
            raise UnsupportedRestore("no original source raster is retained")
        if source.size != self.size:
            raise UnsupportedRestore(
                f"source size {source.size} does not match raster size {self.size}"
            )
        return np.array(source.convert(RASTER_MODE), dtype=np.uint8)


def validate_confidences(confidences: Any, size: Tuple[int, int]) -> np.ndarray:
    """
    Check a segmentation result against the raster it was computed for.

    Args:
        confidences: Row-major per-pixel foreground confidence values
        size: (width, height) of the segmented raster

    Returns:
        Float array of shape (height, width)

    Raises:
        ProviderFailure: If the data is not numeric, has the wrong length,
                         or contains values outside [0, 1]
    """
    width, height = size
    try:
        values = np.asarray(confidences, dtype=np.float32).reshape(-1)
    except (TypeError, ValueError) as exc:
        raise ProviderFailure(f"confidence mask is not numeric: {exc}") from exc

    if values.size != width * height:
        raise ProviderFailure(
            f"confidence mask has {values.size} values, expected {width * height}"
        )
    if not np.all(np.isfinite(values)) or values.min() < 0.0 or values.max() > 1.0:
        raise ProviderFailure("confidence values must be finite and within [0, 1]")
    return values.reshape(height, width)


def apply_confidence_mask(source: Any, confidences: Sequence[float], threshold: float) -> Any:
    """
    Derive the cut-out raster from a source image and a confidence mask.

    Pixels whose confidence is below the threshold get alpha 0; all other
    pixels keep the source's color and alpha.

    Args:
        source: PIL Image that was segmented
        confidences: Row-major confidence values in [0, 1]
        threshold: Keep/discard operating point (e.g. 0.6 strict, 0.35 loose)

    Returns:
        New RGBA PIL Image

    Raises:
        ProviderFailure: If the confidence data is malformed
    """
    img = source.convert(RASTER_MODE)
    mask = validate_confidences(confidences, img.size)
    pixels = np.array(img, dtype=np.uint8)
    pixels[..., 3][mask < threshold] = 0
    return Image.fromarray(pixels)
