"""
Snapshot-based undo/redo history.

Each checkpoint stores the structured editor state (foreground raster,
background, view transform, adjustments, canvas size and retained source),
not a flattened composite, so undo restores full editability.

The log is a bounded sequence plus a current index:

- 0 <= index < len(entries) whenever the log is non-empty (-1 when empty)
- pushing after undo discards the redo branch past index
- pushing beyond capacity evicts the oldest entry and shifts index down
- undo at the first entry and redo at the last are no-ops
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from CS_Libs.constants import MAX_HISTORY
from CS_Libs.ImageEditingLib.editor_models import AdjustmentState, BackgroundSpec, ViewTransform

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EditorSnapshot:
    """Structured editor state captured at a checkpoint.

    Images are private copies; restoring hands out fresh copies again so an
    entry can be restored any number of times.
    """
    foreground: Optional[Any]
    source: Optional[Any]
    background: Optional[BackgroundSpec]
    view: ViewTransform
    adjustments: AdjustmentState
    canvas_size: Tuple[int, int]
    show_background: bool = True


@dataclass(frozen=True)
class HistoryEntry:
    label: str
    snapshot: EditorSnapshot

    @property
    def raster(self) -> Optional[Any]:
        """The foreground raster captured at this checkpoint."""
        return self.snapshot.foreground


class HistoryLog:
    """
    Bounded undo/redo log of editor snapshots.

    Example:
        >>> log = HistoryLog(capacity=30)
        >>> log.push("init", snapshot)
        >>> log.push("brush", snapshot2)
        >>> log.undo().label
        'init'
    """

    def __init__(self, capacity: int = MAX_HISTORY):
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self.capacity = capacity
        self._entries: List[HistoryEntry] = []
        self._index = -1

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def index(self) -> int:
        return self._index

    @property
    def entries(self) -> Tuple[HistoryEntry, ...]:
        return tuple(self._entries)

    @property
    def labels(self) -> List[str]:
        return [entry.label for entry in self._entries]

    @property
    def current(self) -> Optional[HistoryEntry]:
        if self._index < 0:
            return None
        return self._entries[self._index]

    def can_undo(self) -> bool:
        return self._index > 0

    def can_redo(self) -> bool:
        return 0 <= self._index < len(self._entries) - 1

    def clear(self) -> None:
        self._entries.clear()
        self._index = -1

    def push(self, label: str, snapshot: EditorSnapshot) -> HistoryEntry:
        """
        Append a checkpoint after the current index.

        Args:
            label: Human-readable action name (e.g. "crop", "preset-bw")
            snapshot: Structured state to store

        Returns:
            The new entry
        """
        if self._index < len(self._entries) - 1:
            pruned = len(self._entries) - 1 - self._index
            del self._entries[self._index + 1:]
            logger.debug(f"Pruned {pruned} redo entries")

        entry = HistoryEntry(label=label, snapshot=snapshot)
        self._entries.append(entry)

        if len(self._entries) > self.capacity:
            evicted = self._entries.pop(0)
            logger.debug(f"History full, evicted oldest entry '{evicted.label}'")

        self._index = len(self._entries) - 1
        logger.debug(f"Checkpoint '{label}' ({self._index + 1}/{len(self._entries)})")
        return entry

    def undo(self) -> Optional[HistoryEntry]:
        """Step back one entry. Returns the entry to restore, or None at the start."""
        if not self.can_undo():
            return None
        self._index -= 1
        return self._entries[self._index]

    def redo(self) -> Optional[HistoryEntry]:
        """Step forward one entry. Returns the entry to restore, or None at the end."""
        if not self.can_redo():
            return None
        self._index += 1
        return self._entries[self._index]
