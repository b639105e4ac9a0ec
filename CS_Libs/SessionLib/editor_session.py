"""
Editor session for Cutout Studio.

One EditorSession holds the whole editing state (foreground raster,
retained source, background, view transform, adjustments, brush settings,
history and the tool state machine). Every component receives the session
explicitly; there is no module-level state, so independent sessions can
coexist.

Example:
    >>> session = EditorSession()
    >>> session.load_image(Image.open("portrait.jpg"))
    >>> session.apply_preset("bw")
    >>> session.tools.select_tool(Tool.BRUSH)
    >>> session.tools.pointer_down(Point(40, 40))
    >>> session.tools.pointer_up()
    >>> session.undo()
    >>> png_bytes = session.export_png()
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple

from CS_Libs.constants import (
    DEFAULT_BRUSH_COLOR,
    DEFAULT_BRUSH_SIZE,
    ENHANCE_CLARITY_STEP,
    ENHANCE_CONTRAST_STEP,
    HISTORY_LABEL_BG_CHANGE,
    HISTORY_LABEL_CROP,
    HISTORY_LABEL_ENHANCE,
    HISTORY_LABEL_FLIP,
    HISTORY_LABEL_INIT,
    HISTORY_LABEL_MAGIC_ERASER,
    HISTORY_LABEL_RESET,
    HISTORY_LABEL_ROTATE,
    LOOSE_MASK_THRESHOLD,
    MAX_HISTORY,
    RASTER_MODE,
    ROTATION_STEP,
    STRICT_MASK_THRESHOLD,
    ZOOM_STEP,
)
from CS_Libs.errors import DegenerateInput, SessionBusy
from CS_Libs.ImageEditingLib import compositor, crop_bake, export_ops
from CS_Libs.ImageEditingLib.editor_models import (
    AdjustmentState,
    BackgroundSpec,
    CropRegion,
    Point,
    RgbaColor,
    ViewTransform,
    validate_rgba,
)
from CS_Libs.ImageEditingLib.foreground_raster import BrushMode, ForegroundRaster, adjust_brush_size
from CS_Libs.ImageEditingLib.transform_math import canvas_center, clamp_scale, inverse
from CS_Libs.SessionLib import presets, segmentation
from CS_Libs.SessionLib.history_log import EditorSnapshot, HistoryEntry, HistoryLog
from CS_Libs.SessionLib.tool_state import ToolStateMachine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notice:
    """User-visible, non-fatal message (e.g. a failed segmentation)."""
    level: str
    message: str


class EditorSession:
    """
    Complete state of one editing session.

    Args:
        max_history: Capacity of the undo log
        brush_size: Initial brush diameter in pixels
        brush_color: Paint color for the PAINT brush mode
    """

    def __init__(
        self,
        max_history: int = MAX_HISTORY,
        brush_size: int = DEFAULT_BRUSH_SIZE,
        brush_color: RgbaColor = DEFAULT_BRUSH_COLOR,
    ):
        self.canvas_size: Tuple[int, int] = (0, 0)
        self.foreground: Optional[ForegroundRaster] = None
        self.source_image: Optional[Any] = None
        self.background: Optional[BackgroundSpec] = None
        self.show_background = True
        self.view = ViewTransform.identity()
        self.adjustments = AdjustmentState()

        self.brush_size = brush_size
        self.brush_mode = BrushMode.ERASE
        self.brush_color = validate_rgba(brush_color, "brush_color")
        self.magic_strict = True

        self.history = HistoryLog(max_history)
        self.tools = ToolStateMachine(self)
        self.notices: List[Notice] = []

        self.raster_generation = 0
        self.segmentation_in_flight = False
        self._listeners: List[Callable[[], None]] = []

    # === Render state === #

    @property
    def foreground_image(self) -> Optional[Any]:
        return self.foreground.image if self.foreground is not None else None

    @property
    def crop_region(self) -> Optional[CropRegion]:
        return self.tools.crop_region

    @property
    def is_loaded(self) -> bool:
        return self.foreground is not None

    def compose(self, include_overlay: bool = True) -> Any:
        return compositor.compose(self, include_overlay=include_overlay)

    def render(self, surface: Any) -> None:
        compositor.render(surface, self)

    def export_png(self) -> Optional[bytes]:
        """PNG bytes of the composite, or None when nothing is loaded."""
        try:
            return export_ops.export_png(self)
        except DegenerateInput as exc:
            logger.debug(f"Ignoring export: {exc}")
            return None

    def add_listener(self, callback: Callable[[], None]) -> None:
        """Register a render-invalidation callback."""
        self._listeners.append(callback)

    def _changed(self) -> None:
        for callback in self._listeners:
            callback()

    def notify(self, level: str, message: str) -> None:
        self.notices.append(Notice(level, message))
        self._changed()

    # === Concurrency guard === #

    def check_idle(self, action: str) -> None:
        """
        Raises:
            SessionBusy: If a segmentation request is in flight
        """
        if self.segmentation_in_flight:
            raise SessionBusy(f"'{action}' rejected: background removal in progress")

    def ensure_idle(self, action: str) -> bool:
        """Return False (and log) when a segmentation request is in flight."""
        try:
            self.check_idle(action)
        except SessionBusy as exc:
            logger.warning(str(exc))
            return False
        return True

    def bump_generation(self) -> None:
        self.raster_generation += 1

    # === History === #

    def snapshot(self) -> EditorSnapshot:
        return EditorSnapshot(
            foreground=self.foreground.image.copy() if self.foreground is not None else None,
            source=self.source_image.copy() if self.source_image is not None else None,
            background=self.background,
            view=self.view,
            adjustments=self.adjustments,
            canvas_size=self.canvas_size,
            show_background=self.show_background,
        )

    def restore(self, snapshot: EditorSnapshot) -> None:
        self.tools.reset_gesture()
        if snapshot.foreground is not None:
            self.foreground = ForegroundRaster(snapshot.foreground.copy())
        else:
            self.foreground = None
        self.source_image = snapshot.source.copy() if snapshot.source is not None else None
        self.background = snapshot.background
        self.view = snapshot.view
        self.adjustments = snapshot.adjustments
        self.canvas_size = snapshot.canvas_size
        self.show_background = snapshot.show_background
        self.bump_generation()
        self._changed()

    def checkpoint(self, label: str) -> Optional[HistoryEntry]:
        """Append the current state to the history log."""
        if not self.is_loaded:
            return None
        entry = self.history.push(label, self.snapshot())
        self._changed()
        return entry

    def can_undo(self) -> bool:
        return self.history.can_undo()

    def can_redo(self) -> bool:
        return self.history.can_redo()

    def undo(self) -> bool:
        if not self.ensure_idle("undo"):
            return False
        entry = self.history.undo()
        if entry is None:
            return False
        self.restore(entry.snapshot)
        logger.debug(f"Undo to '{entry.label}'")
        return True

    def redo(self) -> bool:
        if not self.ensure_idle("redo"):
            return False
        entry = self.history.redo()
        if entry is None:
            return False
        self.restore(entry.snapshot)
        logger.debug(f"Redo to '{entry.label}'")
        return True

    # === Image lifecycle === #

    def load_image(self, image: Any) -> bool:
        """
        Start editing a new source image.

        The canvas takes the image size, the view and background reset, the
        foreground becomes a copy of the source and the history is reseeded
        with an "init" checkpoint.

        Returns:
            False for a zero-sized image (ignored)
        """
        if not hasattr(image, "mode"):
            raise TypeError(f"Expected PIL Image, got {type(image)}")
        if image.width == 0 or image.height == 0:
            logger.debug("Ignoring zero-sized source image")
            return False

        self.tools.reset_gesture()
        self.source_image = image.convert(RASTER_MODE)
        self.foreground = ForegroundRaster(self.source_image.copy())
        self.canvas_size = self.source_image.size
        self.view = ViewTransform.identity()
        self.background = None
        self.bump_generation()

        self.history.clear()
        self.checkpoint(HISTORY_LABEL_INIT)
        logger.info(f"Loaded {image.width}x{image.height} image")
        return True

    def clear(self) -> None:
        """Drop all images, the background and the history."""
        self.tools.reset_gesture()
        self.source_image = None
        self.foreground = None
        self.background = None
        self.canvas_size = (0, 0)
        self.history.clear()
        self.bump_generation()
        self._changed()

    def reset(self) -> bool:
        """Reset view, background and adjustments; restore the foreground from the source."""
        if self.source_image is None or not self.ensure_idle("reset"):
            return False
        self.tools.reset_gesture()
        self.view = ViewTransform.identity()
        self.background = None
        self.adjustments = AdjustmentState()
        self.foreground = ForegroundRaster(self.source_image.copy())
        self.canvas_size = self.source_image.size
        self.bump_generation()
        self.checkpoint(HISTORY_LABEL_RESET)
        return True

    # === View transform === #

    def set_scale(self, scale: float) -> None:
        self.view = self.view.with_changes(scale=clamp_scale(scale))
        self._changed()

    def zoom_in(self) -> None:
        self.set_scale(self.view.scale + ZOOM_STEP)

    def zoom_out(self) -> None:
        self.set_scale(self.view.scale - ZOOM_STEP)

    def pan_by(self, dx: float, dy: float) -> None:
        self.view = self.view.with_changes(
            offset_x=self.view.offset_x + dx,
            offset_y=self.view.offset_y + dy,
        )
        self._changed()

    def rotate(self) -> None:
        """Rotate the view a quarter turn clockwise on screen."""
        self.view = self.view.with_changes(
            rotation_deg=(self.view.rotation_deg + ROTATION_STEP) % 360
        )
        self.checkpoint(HISTORY_LABEL_ROTATE)

    def flip(self) -> None:
        self.view = self.view.with_changes(flipped=not self.view.flipped)
        self.checkpoint(HISTORY_LABEL_FLIP)

    def to_raster(self, point: Point) -> Point:
        """Map a canvas-surface point into foreground raster coordinates."""
        return inverse(point, self.view, canvas_center(self.canvas_size))

    # === Background === #

    def set_background_color(self, color: RgbaColor) -> None:
        self.background = BackgroundSpec.solid(color)
        self._changed()

    def set_background_image(self, image: Any) -> bool:
        if not self.ensure_idle("background change"):
            return False
        self.background = BackgroundSpec.from_image(image)
        self.bump_generation()
        self.checkpoint(HISTORY_LABEL_BG_CHANGE)
        return True

    def set_background_placement(self, scale: float, offset_x: float, offset_y: float) -> None:
        if self.background is None or not self.background.is_image:
            logger.debug("Background placement only applies to image backgrounds")
            return
        self.background = self.background.with_placement(scale, offset_x, offset_y)
        self._changed()

    def toggle_background_layer(self) -> None:
        self.show_background = not self.show_background
        self._changed()

    # === Adjustments === #

    def set_adjustment(self, name: str, value: Any) -> None:
        """Set one slider (or "tint") without recording a checkpoint."""
        if name not in AdjustmentState.slider_names() and name != "tint":
            raise KeyError(f"Unknown adjustment '{name}'")
        self.adjustments = self.adjustments.with_changes(**{name: value})
        self._changed()

    def apply_preset(self, name: str) -> presets.Preset:
        return presets.apply_preset(self, name)

    def enhance(self) -> None:
        """Simulated unblur: a little more contrast and clarity."""
        a = self.adjustments
        self.adjustments = a.with_changes(
            contrast=a.contrast + ENHANCE_CONTRAST_STEP,
            clarity=a.clarity + ENHANCE_CLARITY_STEP,
        )
        self.checkpoint(HISTORY_LABEL_ENHANCE)

    # === Brush === #

    def set_brush_mode(self, mode: BrushMode) -> None:
        self.brush_mode = BrushMode(mode)

    def adjust_brush_size(self, direction: int) -> int:
        self.brush_size = adjust_brush_size(self.brush_size, direction)
        return self.brush_size

    def brush_at(self, point: Point) -> bool:
        """
        Stamp the brush at a canvas-surface point.

        The point is mapped through the inverse view transform so the stamp
        lands on the raster pixel shown under the pointer.

        Returns:
            True if the raster changed
        """
        if self.foreground is None or not self.ensure_idle("brush"):
            return False
        changed = self.foreground.stamp(
            self.to_raster(point),
            self.brush_size / 2,
            self.brush_mode,
            color=self.brush_color,
            source=self.source_image,
        )
        if changed:
            self.bump_generation()
            self._changed()
        return changed

    # === Crop === #

    def crop(self, x: float, y: float, w: float, h: float) -> bool:
        """Bake a canvas-surface rectangle into a new base raster and checkpoint it."""
        if not crop_bake.crop(self, x, y, w, h):
            return False
        self.checkpoint(HISTORY_LABEL_CROP)
        return True

    # === Segmentation === #

    async def remove_background(self, provider: segmentation.SegmentationProvider,
                                threshold: float = STRICT_MASK_THRESHOLD) -> bool:
        return await segmentation.remove_background(self, provider, threshold)

    async def magic_erase(self, provider: segmentation.SegmentationProvider) -> bool:
        """Toggle between strict and loose thresholds and re-run background removal."""
        if not self.ensure_idle("magic eraser"):
            return False
        self.magic_strict = not self.magic_strict
        threshold = STRICT_MASK_THRESHOLD if self.magic_strict else LOOSE_MASK_THRESHOLD
        return await segmentation.remove_background(
            self, provider, threshold, label=HISTORY_LABEL_MAGIC_ERASER
        )
