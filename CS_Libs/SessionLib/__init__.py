"""
SessionLib - Editor session and interaction logic

This module holds the explicit editor session object together with the
tool state machine, undo/redo history, presets and the segmentation
hand-off.
"""

from CS_Libs.SessionLib.history_log import EditorSnapshot, HistoryEntry, HistoryLog
from CS_Libs.SessionLib.tool_state import (
    Tool,
    ToolStateMachine,
    Idle,
    Cropping,
    Brushing,
    Panning,
)
from CS_Libs.SessionLib.presets import PRESETS, Preset, apply_preset, get_preset
from CS_Libs.SessionLib.segmentation import SegmentationProvider, remove_background
from CS_Libs.SessionLib.editor_session import EditorSession, Notice

__all__ = [
    "EditorSnapshot",
    "HistoryEntry",
    "HistoryLog",
    "Tool",
    "ToolStateMachine",
    "Idle",
    "Cropping",
    "Brushing",
    "Panning",
    "PRESETS",
    "Preset",
    "apply_preset",
    "get_preset",
    "SegmentationProvider",
    "remove_background",
    "EditorSession",
    "Notice",
]
