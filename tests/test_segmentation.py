"""
Tests for the segmentation hand-off (background removal).

Async code is driven with asyncio.run; providers are in-memory fakes.

Tests cover:
- Thresholding the provider mask into the foreground
- Sync and async providers
- Provider failures and malformed masks
- Single in-flight request and busy-session rejections
- Discarding stale results
- Magic eraser threshold toggling
"""

import asyncio

import numpy as np
from PIL import Image

from CS_Libs.ImageEditingLib.editor_models import Point
from CS_Libs.SessionLib.editor_session import EditorSession

from conftest import (
    FailingProvider,
    GatedProvider,
    StaticProvider,
    SyncProvider,
    banded_confidences,
    make_gradient_image,
)

WIDTH, HEIGHT = 8, 4


def make_session():
    session = EditorSession()
    session.load_image(make_gradient_image(WIDTH, HEIGHT))
    return session


def alpha_row(session):
    return np.asarray(session.foreground_image)[0, :, 3].tolist()


class TestRemoveBackground:
    """Test successful background removal."""

    def test_strict_threshold(self):
        """Should keep only pixels at or above 0.6 confidence."""
        session = make_session()
        provider = StaticProvider(banded_confidences(WIDTH, HEIGHT))

        assert asyncio.run(session.remove_background(provider))

        assert alpha_row(session) == [255] * 4 + [0] * 4
        assert provider.calls == [(WIDTH, HEIGHT)]
        assert session.history.labels == ["init", "bg-removed"]

    def test_color_preserved(self):
        """Should keep the source colors of discarded pixels."""
        session = make_session()
        source = session.source_image.copy()

        asyncio.run(session.remove_background(StaticProvider(banded_confidences(WIDTH, HEIGHT))))

        assert session.foreground_image.getpixel((7, 0))[:3] == source.getpixel((7, 0))[:3]

    def test_sync_provider(self):
        """Should accept a provider whose segment() is a plain method."""
        session = make_session()

        assert asyncio.run(session.remove_background(SyncProvider(banded_confidences(WIDTH, HEIGHT))))
        assert alpha_row(session)[0] == 255

    def test_not_loaded(self):
        """Should do nothing when no image is loaded."""
        session = EditorSession()
        provider = StaticProvider([])

        assert not asyncio.run(session.remove_background(provider))
        assert provider.calls == []

    def test_runs_against_retained_source(self):
        """Should segment the un-erased source, not the edited raster."""
        session = make_session()
        session.brush_size = 4
        session.brush_at(Point(1, 1))

        asyncio.run(session.remove_background(StaticProvider([1.0] * (WIDTH * HEIGHT))))

        assert alpha_row(session)[1] == 255


class TestProviderFailure:
    """Test provider failures are absorbed."""

    def test_exception_records_notice(self):
        """Should keep the raster and record an error notice."""
        session = make_session()
        before = session.foreground_image.tobytes()

        assert not asyncio.run(session.remove_background(FailingProvider()))

        assert session.foreground_image.tobytes() == before
        assert session.notices[-1].level == "error"
        assert session.history.labels == ["init"]
        assert not session.segmentation_in_flight

    def test_malformed_mask(self):
        """Should reject a mask of the wrong length."""
        session = make_session()

        assert not asyncio.run(session.remove_background(StaticProvider([0.9] * 3)))
        assert len(session.notices) == 1

    def test_none_result(self):
        """Should treat a missing mask as a failure."""
        session = make_session()

        assert not asyncio.run(session.remove_background(StaticProvider(None)))
        assert session.notices


class TestInFlight:
    """Test the single-slot in-flight guard."""

    def test_second_request_rejected(self):
        """Should reject a second request and busy-session edits while one is pending."""
        session = make_session()
        provider = GatedProvider(banded_confidences(WIDTH, HEIGHT))

        async def scenario():
            first = asyncio.create_task(session.remove_background(provider))
            await asyncio.sleep(0)
            assert session.segmentation_in_flight

            second = await session.remove_background(StaticProvider(banded_confidences(WIDTH, HEIGHT)))
            brushed = session.brush_at(Point(1, 1))
            cropped = session.crop(0, 0, 6, 6)

            provider.gate.set()
            return await first, second, brushed, cropped

        first, second, brushed, cropped = asyncio.run(scenario())

        assert first is True
        assert second is False
        assert brushed is False
        assert cropped is False
        assert session.history.labels == ["init", "bg-removed"]
        assert not session.segmentation_in_flight

    def test_stale_result_discarded(self):
        """Should not overwrite a raster replaced while the request was pending."""
        session = make_session()
        provider = GatedProvider(banded_confidences(WIDTH, HEIGHT))
        replacement = Image.new("RGBA", (5, 5), (1, 2, 3, 255))

        async def scenario():
            task = asyncio.create_task(session.remove_background(provider))
            await asyncio.sleep(0)
            session.load_image(replacement)
            provider.gate.set()
            return await task

        assert asyncio.run(scenario()) is False
        assert session.foreground_image.tobytes() == replacement.tobytes()
        assert session.history.labels == ["init"]


class TestMagicEraser:
    """Test strict/loose threshold toggling."""

    def test_toggles_threshold(self):
        """Should alternate loose and strict thresholds."""
        session = make_session()
        provider = StaticProvider(banded_confidences(WIDTH, HEIGHT))

        assert asyncio.run(session.magic_erase(provider))
        assert alpha_row(session) == [255] * 6 + [0] * 2
        assert session.history.labels[-1] == "magic-eraser"

        assert asyncio.run(session.magic_erase(provider))
        assert alpha_row(session) == [255] * 4 + [0] * 4

    def test_rejected_while_busy(self):
        """Should not toggle while a request is in flight."""
        session = make_session()
        session.segmentation_in_flight = True

        assert not asyncio.run(session.magic_erase(StaticProvider([])))
        assert session.magic_strict
