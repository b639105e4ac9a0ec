"""
Constants and configuration values for Cutout Studio.

This module centralizes all constant values, magic numbers, and
configuration settings used throughout the editing core.
"""

# History
MAX_HISTORY = 30
HISTORY_LABEL_INIT = "init"
HISTORY_LABEL_CROP = "crop"
HISTORY_LABEL_BRUSH = "brush"
HISTORY_LABEL_ROTATE = "rotate"
HISTORY_LABEL_FLIP = "flip"
HISTORY_LABEL_RESET = "reset"
HISTORY_LABEL_BG_CHANGE = "bg-change"
HISTORY_LABEL_BG_REMOVED = "bg-removed"
HISTORY_LABEL_MAGIC_ERASER = "magic-eraser"
HISTORY_LABEL_ENHANCE = "enhance"
PRESET_LABEL_PREFIX = "preset-"

# View transform
MIN_VIEW_SCALE = 0.2
MAX_VIEW_SCALE = 4.0
ZOOM_STEP = 0.1
ALLOWED_ROTATIONS = (0, 90, 180, 270)
ROTATION_STEP = 90

# Brush
DEFAULT_BRUSH_SIZE = 30
MIN_BRUSH_SIZE = 4
BRUSH_SIZE_STEP = 4
DEFAULT_BRUSH_COLOR = (255, 0, 0, 255)

# Crop
MIN_CROP_SIZE = 5
CROP_OUTLINE_COLOR = (124, 58, 237, 255)  # #7c3aed
CROP_OUTLINE_WIDTH = 2

# Segmentation thresholds (confidence below threshold is discarded)
STRICT_MASK_THRESHOLD = 0.6
LOOSE_MASK_THRESHOLD = 0.35

# "Enhance" (unblur) action increments
ENHANCE_CONTRAST_STEP = 10
ENHANCE_CLARITY_STEP = 20

# Rendering
RASTER_MODE = "RGBA"
TRANSPARENT = (0, 0, 0, 0)

# Export
EXPORT_FILE_PREFIX = "bg_removed_"
DEFAULT_OUTPUT_FORMAT = "PNG"
EXPORT_EXTENSION = ".png"
