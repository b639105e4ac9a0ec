"""
Tool state machine.

Interprets pointer events against the active tool. Exactly one tool is
active at a time; the gesture in progress is one of four variants:

    Idle -> Cropping | Brushing | Panning -> Idle

- pointer_down enters the variant for the active tool and records its anchor
- pointer_move updates the crop region, stamps the brush at the
  inverse-mapped point, or accumulates a pan delta into the view offsets
- pointer_up finalizes (commit crop, checkpoint brush stroke) and returns to Idle
- pointer_cancel returns to Idle without baking a crop; brush stamps already
  applied are kept and checkpointed

All pointer coordinates are canvas-surface coordinates.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Union

from CS_Libs.constants import HISTORY_LABEL_BRUSH
from CS_Libs.ImageEditingLib.editor_models import CropRegion, Point

logger = logging.getLogger(__name__)


class Tool(Enum):
    NONE = "none"
    CROP = "crop"
    BRUSH = "brush"
    PAN = "pan"
    MOVE = "move"


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Cropping:
    anchor: Point
    region: Optional[CropRegion] = None


@dataclass
class Brushing:
    stamps: List[Point] = field(default_factory=list)
    changed: bool = False


@dataclass(frozen=True)
class Panning:
    last: Point
    moving: bool = False


ToolState = Union[Idle, Cropping, Brushing, Panning]


class ToolStateMachine:
    """
    Drives session edits from pointer input.

    Args:
        session: EditorSession the gestures act on
    """

    def __init__(self, session: Any):
        self.session = session
        self.active_tool = Tool.NONE
        self.state: ToolState = Idle()

    @property
    def crop_region(self) -> Optional[CropRegion]:
        if isinstance(self.state, Cropping):
            return self.state.region
        return None

    @property
    def is_idle(self) -> bool:
        return isinstance(self.state, Idle)

    def select_tool(self, tool: Tool) -> None:
        """Activate a tool, cancelling any gesture of the previous one."""
        if not isinstance(tool, Tool):
            raise TypeError(f"Expected Tool, got {type(tool)}")
        if tool is self.active_tool:
            return
        self.pointer_cancel()
        logger.debug(f"Tool changed: {self.active_tool.value} -> {tool.value}")
        self.active_tool = tool

    def toggle_tool(self, tool: Tool) -> None:
        """Select a tool, or deselect it if it is already active."""
        self.select_tool(Tool.NONE if tool is self.active_tool else tool)

    def pointer_down(self, point: Point) -> None:
        if not self.is_idle:
            self.pointer_cancel()

        tool = self.active_tool
        if tool is Tool.CROP:
            self.state = Cropping(anchor=point)
        elif tool is Tool.BRUSH:
            stroke = Brushing()
            self.state = stroke
            self._stamp(stroke, point)
        elif tool in (Tool.PAN, Tool.MOVE):
            self.state = Panning(last=point, moving=tool is Tool.MOVE)
        elif tool is Tool.NONE:
            self.state = Idle()
        else:
            raise TypeError(f"Unhandled tool: {tool}")

    def pointer_move(self, point: Point) -> None:
        state = self.state
        if isinstance(state, Idle):
            return
        if isinstance(state, Cropping):
            self.state = Cropping(anchor=state.anchor, region=CropRegion.from_corners(state.anchor, point))
        elif isinstance(state, Brushing):
            self._stamp(state, point)
        elif isinstance(state, Panning):
            self.session.pan_by(point.x - state.last.x, point.y - state.last.y)
            self.state = Panning(last=point, moving=state.moving)
        else:
            raise TypeError(f"Unhandled tool state: {state!r}")

    def pointer_up(self, point: Optional[Point] = None) -> None:
        if point is not None:
            self.pointer_move(point)

        state = self.state
        self.state = Idle()
        if isinstance(state, Idle):
            return
        if isinstance(state, Cropping):
            region = state.region
            if region is not None and region.is_committable():
                self.session.crop(*region.rounded())
            else:
                logger.debug("Crop drag too small, ignored")
        elif isinstance(state, Brushing):
            self._finish_stroke(state)
        elif isinstance(state, Panning):
            pass
        else:
            raise TypeError(f"Unhandled tool state: {state!r}")

    def pointer_cancel(self) -> None:
        """Abort the gesture. Crops are dropped; brush stamps are kept."""
        state = self.state
        self.state = Idle()
        if isinstance(state, Brushing):
            self._finish_stroke(state)

    def reset_gesture(self) -> None:
        """Drop the gesture without finalizing it (used when state is replaced)."""
        self.state = Idle()

    def wheel(self, delta_y: float) -> None:
        """Step the brush size while the brush tool is active."""
        if self.active_tool is not Tool.BRUSH or delta_y == 0:
            return
        self.session.adjust_brush_size(-1 if delta_y > 0 else 1)

    def _stamp(self, stroke: Brushing, point: Point) -> None:
        stroke.stamps.append(point)
        if self.session.brush_at(point):
            stroke.changed = True

    def _finish_stroke(self, stroke: Brushing) -> None:
        if stroke.changed:
            self.session.checkpoint(HISTORY_LABEL_BRUSH)
