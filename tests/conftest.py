"""
Pytest configuration and shared fixtures for Cutout Studio tests.

This module provides shared test fixtures and fake segmentation
providers used across multiple test modules.
"""

import asyncio

import numpy as np
import pytest
from PIL import Image

from CS_Libs.SessionLib.editor_session import EditorSession


def make_gradient_image(width, height):
    """
    Build an opaque RGBA image where (almost) every pixel is distinct.

    Args:
        width: Image width
        height: Image height

    Returns:
        RGBA PIL Image
    """
    ys, xs = np.mgrid[0:height, 0:width]
    pixels = np.zeros((height, width, 4), dtype=np.uint8)
    pixels[..., 0] = (xs * 4) % 256
    pixels[..., 1] = (ys * 6) % 256
    pixels[..., 2] = (xs + ys) % 256
    pixels[..., 3] = 255
    return Image.fromarray(pixels)


def banded_confidences(width, height):
    """
    Row-major confidences in three vertical bands.

    Left half 0.9 (kept by both thresholds), the next quarter 0.5 (kept
    only by the loose threshold), the last quarter 0.1 (always dropped).
    """
    values = []
    for _ in range(height):
        for x in range(width):
            if x < width // 2:
                values.append(0.9)
            elif x < (3 * width) // 4:
                values.append(0.5)
            else:
                values.append(0.1)
    return values


class StaticProvider:
    """Async provider returning a fixed mask."""

    def __init__(self, confidences):
        self.confidences = confidences
        self.calls = []

    async def segment(self, image):
        self.calls.append(image.size)
        return self.confidences


class SyncProvider:
    """Provider with a plain (non-async) segment method."""

    def __init__(self, confidences):
        self.confidences = confidences

    def segment(self, image):
        return self.confidences


class FailingProvider:
    """Provider whose model call raises."""

    async def segment(self, image):
        raise RuntimeError("model unavailable")


class GatedProvider:
    """Provider that blocks until its gate is opened."""

    def __init__(self, confidences):
        self.confidences = confidences
        self.gate = asyncio.Event()

    async def segment(self, image):
        await self.gate.wait()
        return self.confidences


@pytest.fixture
def gradient_image():
    """
    Provide a 100x80 opaque gradient image.

    Returns:
        RGBA PIL Image
    """
    return make_gradient_image(100, 80)


@pytest.fixture
def session():
    """Provide an empty editor session."""
    return EditorSession()


@pytest.fixture
def loaded_session(gradient_image):
    """
    Provide an editor session with the gradient image loaded.

    Returns:
        EditorSession with history ["init"]
    """
    editor = EditorSession()
    editor.load_image(gradient_image)
    return editor


@pytest.fixture
def sample_rgba_colors():
    """
    Provide a list of sample RGBA color tuples for testing.

    Returns:
        List of (R, G, B, A) tuples with common test colors
    """
    return [
        (255, 0, 0, 255),    # Red
        (0, 255, 0, 255),    # Green
        (0, 0, 255, 255),    # Blue
        (255, 255, 255, 255),  # White
        (0, 0, 0, 255),      # Black
        (128, 128, 128, 255),  # Gray
    ]
