"""
Export operations for Cutout Studio.

The only persisted artifact is a lossless PNG of the full composite at the
native canvas resolution. Editor state itself is never written to disk.

Functions:
    export_png: Render the composite and encode it as PNG bytes
    default_export_name: Timestamped file name for downloads
    save_png: Write the PNG into an existing directory
"""

import io
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from CS_Libs.constants import DEFAULT_OUTPUT_FORMAT, EXPORT_EXTENSION, EXPORT_FILE_PREFIX
from CS_Libs.errors import DegenerateInput
from CS_Libs.ImageEditingLib.compositor import compose

logger = logging.getLogger(__name__)


def export_png(state: Any) -> bytes:
    """
    Render the current composite (without UI overlays) as PNG bytes.

    Args:
        state: EditorSession or FrameState to render

    Returns:
        PNG-encoded image bytes

    Raises:
        DegenerateInput: If the canvas has no pixels
    """
    width, height = state.canvas_size
    if width <= 0 or height <= 0:
        raise DegenerateInput(f"nothing to export from a {width}x{height} canvas")

    frame = compose(state, include_overlay=False)
    buffer = io.BytesIO()
    frame.save(buffer, format=DEFAULT_OUTPUT_FORMAT)
    return buffer.getvalue()


def default_export_name(now: Optional[datetime] = None) -> str:
    stamp = int((now or datetime.now()).timestamp() * 1000)
    return f"{EXPORT_FILE_PREFIX}{stamp}{EXPORT_EXTENSION}"


def save_png(state: Any, output_dir: Path, filename: Optional[str] = None) -> Optional[Path]:
    """
    Save the rendered composite into a directory.

    Args:
        state: EditorSession or FrameState to render
        output_dir: Existing directory to write into
        filename: File name, defaults to default_export_name()

    Returns:
        Path of the written file, or None when the canvas is empty

    Raises:
        OSError: If the directory does not exist or is not a directory
    """
    output_dir = Path(output_dir)
    if not output_dir.exists():
        raise OSError(f"Output directory does not exist: {output_dir}")

    if not output_dir.is_dir():
        raise OSError(f"Output path is not a directory: {output_dir}")

    save_path = output_dir / (filename or default_export_name())
    try:
        data = export_png(state)
    except DegenerateInput as exc:
        logger.warning(f"Skipping export: {exc}")
        return None
    save_path.write_bytes(data)
    logger.info(f"Exported {state.canvas_size[0]}x{state.canvas_size[1]} image to {save_path}")
    return save_path
