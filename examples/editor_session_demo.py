"""
Headless walkthrough of an editing session.

Loads a synthetic portrait, removes the background with a stand-in
segmentation provider, erases a stroke, applies a preset, rotates and crops,
then walks the undo history and exports a PNG.

Run from the repository root:
    python examples/editor_session_demo.py [output_dir]
"""

import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import asyncio
import logging
import tempfile

import numpy as np
from PIL import Image, ImageDraw

from CS_Libs.ImageEditingLib import Point, save_png
from CS_Libs.SessionLib import EditorSession, Tool


class EllipseProvider:
    """Pretends the subject is the ellipse inscribed in the frame."""

    async def segment(self, image):
        await asyncio.sleep(0.05)
        width, height = image.size
        ys, xs = np.mgrid[0:height, 0:width]
        nx = (xs + 0.5 - width / 2) / (width / 2)
        ny = (ys + 0.5 - height / 2) / (height / 2)
        distance = np.sqrt(nx * nx + ny * ny)
        return np.clip(1.2 - distance, 0.0, 1.0).ravel().tolist()


def make_portrait(width=320, height=240):
    img = Image.new("RGBA", (width, height), (40, 160, 60, 255))
    draw = ImageDraw.Draw(img)
    draw.ellipse([width * 0.2, height * 0.1, width * 0.8, height * 0.9], fill=(230, 180, 150, 255))
    draw.ellipse([width * 0.38, height * 0.35, width * 0.45, height * 0.45], fill=(30, 30, 30, 255))
    draw.ellipse([width * 0.55, height * 0.35, width * 0.62, height * 0.45], fill=(30, 30, 30, 255))
    return img


def run_demo(output_dir):
    session = EditorSession()
    session.load_image(make_portrait())
    print(f"Loaded canvas {session.canvas_size}")

    removed = asyncio.run(session.remove_background(EllipseProvider()))
    print(f"Background removed: {removed}")

    session.set_background_color((20, 40, 120, 255))

    tools = session.tools
    tools.select_tool(Tool.BRUSH)
    tools.pointer_down(Point(160, 200))
    for x in range(165, 220, 6):
        tools.pointer_move(Point(x, 200))
    tools.pointer_up()

    session.apply_preset("cinematic")
    session.rotate()

    tools.select_tool(Tool.CROP)
    tools.pointer_down(Point(60, 20))
    tools.pointer_move(Point(260, 220))
    tools.pointer_up()
    print(f"Cropped canvas {session.canvas_size}")

    print("History:")
    for i, label in enumerate(session.history.labels):
        marker = "*" if i == session.history.index else " "
        print(f"  {marker} {i:2d} {label}")

    session.undo()
    print(f"After undo: canvas {session.canvas_size}, rotation {session.view.rotation_deg}")
    session.redo()

    path = save_png(session, output_dir)
    print(f"Saved {path}")
    return path


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    if len(sys.argv) > 1:
        run_demo(Path(sys.argv[1]))
    else:
        with tempfile.TemporaryDirectory() as tmp:
            run_demo(Path(tmp))
