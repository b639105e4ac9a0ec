"""
CS_Libs - Cutout Studio Library Modules

This package contains the editing core for Cutout Studio,
organized into specialized sub-packages:

- ImageEditingLib: Raster models, transform math, filters, compositing, crop and export
- SessionLib: Editor session, tool state machine, history, presets and segmentation
"""

__version__ = "0.1.0"
