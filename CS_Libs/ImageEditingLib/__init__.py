"""
ImageEditingLib - Raster models and pure image operations

This module provides the data model, view transform math, tonal filters,
compositor, foreground raster / brush engine, crop bake and PNG export
for the Cutout Studio editing core.
"""

from CS_Libs.ImageEditingLib.editor_models import (
    AdjustmentState,
    BackgroundSpec,
    CropRegion,
    Point,
    RgbaColor,
    ViewTransform,
)
from CS_Libs.ImageEditingLib.transform_math import (
    forward,
    inverse,
    clamp_scale,
    canvas_center,
)
from CS_Libs.ImageEditingLib.adjustment_filters import (
    ToneOperation,
    build_tone_operations,
    apply_tone_operations,
)
from CS_Libs.ImageEditingLib.compositor import FrameState, compose, render
from CS_Libs.ImageEditingLib.foreground_raster import (
    BrushMode,
    ForegroundRaster,
    adjust_brush_size,
    apply_confidence_mask,
)
from CS_Libs.ImageEditingLib.crop_bake import crop, extract_region
from CS_Libs.ImageEditingLib.export_ops import export_png, save_png

__all__ = [
    "AdjustmentState",
    "BackgroundSpec",
    "CropRegion",
    "Point",
    "RgbaColor",
    "ViewTransform",
    "forward",
    "inverse",
    "clamp_scale",
    "canvas_center",
    "ToneOperation",
    "build_tone_operations",
    "apply_tone_operations",
    "FrameState",
    "compose",
    "render",
    "BrushMode",
    "ForegroundRaster",
    "adjust_brush_size",
    "apply_confidence_mask",
    "crop",
    "extract_region",
    "export_png",
    "save_png",
]
