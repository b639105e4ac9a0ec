"""
Tests for the crop / bake operation.

Tests cover:
- Bit-exact rendering of the baked region
- Reset of the view, background and adjustments after baking
- Image backgrounds beyond the canvas edge, and hidden backgrounds
- Minimum size and busy-session rejection
- Rectangles extending past the canvas
- Rotate, flip, crop scenario
"""

import unittest

from PIL import Image

from CS_Libs.ImageEditingLib.crop_bake import extract_region, normalize_rect
from CS_Libs.ImageEditingLib.editor_models import AdjustmentState, ViewTransform
from CS_Libs.SessionLib.editor_session import EditorSession

from conftest import make_gradient_image


class TestCropExactness(unittest.TestCase):
    """Test that the post-crop render equals the pre-crop pixels."""

    def setUp(self):
        self.session = EditorSession()
        self.session.load_image(make_gradient_image(100, 80))

    def assert_crop_exact(self, x, y, w, h):
        expected = self.session.compose(include_overlay=False).crop((x, y, x + w, y + h))

        self.assertTrue(self.session.crop(x, y, w, h))

        self.assertEqual(self.session.canvas_size, (w, h))
        self.assertEqual(self.session.compose().tobytes(), expected.tobytes())

    def test_identity_view(self):
        """Test crop with no transform or adjustments."""
        self.assert_crop_exact(10, 5, 50, 40)

    def test_transformed_view(self):
        """Test crop bakes the zoomed, panned, rotated view."""
        self.session.set_scale(1.5)
        self.session.pan_by(7, -4)
        self.session.rotate()
        self.assert_crop_exact(20, 15, 30, 30)

    def test_background_and_adjustments(self):
        """Test crop bakes the background and filters exactly once."""
        self.session.set_background_color((0, 0, 255, 255))
        self.session.apply_preset("vintage")
        self.session.set_scale(0.5)
        self.assert_crop_exact(0, 0, 100, 80)

    def test_state_reset_after_bake(self):
        """Test view, background and adjustments are reset after baking."""
        self.session.set_background_color((0, 0, 255, 255))
        self.session.apply_preset("cool")
        self.session.flip()

        self.session.crop(10, 10, 40, 40)

        self.assertTrue(self.session.view.is_identity())
        self.assertIsNone(self.session.background)
        self.assertEqual(self.session.adjustments, AdjustmentState())
        self.assertEqual(self.session.source_image.size, (40, 40))
        self.assertEqual(self.session.history.labels[-1], "crop")

    def test_zoomed_out_image_background(self):
        """Test the background beyond the canvas edge is baked when zoomed out."""
        self.session.set_background_image(Image.new("RGB", (200, 200), "lime"))
        self.session.set_scale(0.5)
        self.assert_crop_exact(0, 0, 10, 10)

        self.assertEqual(self.session.foreground_image.getpixel((5, 5)), (0, 255, 0, 255))

    def test_hidden_background_kept(self):
        """Test a hidden background is not baked and survives the crop."""
        self.session.set_background_image(Image.new("RGB", (200, 200), "lime"))
        self.session.toggle_background_layer()
        self.assert_crop_exact(10, 10, 40, 40)

        self.assertIsNotNone(self.session.background)
        self.assertTrue(self.session.background.is_image)
        self.assertFalse(self.session.show_background)

    def test_rect_past_canvas_is_transparent(self):
        """Test parts of the rectangle outside the canvas become transparent."""
        self.session.crop(80, 60, 40, 40)

        self.assertEqual(self.session.canvas_size, (40, 40))
        self.assertEqual(self.session.foreground_image.getpixel((0, 0))[3], 255)
        self.assertEqual(self.session.foreground_image.getpixel((30, 30)), (0, 0, 0, 0))


class TestCropRejections(unittest.TestCase):
    """Test crops that must be ignored."""

    def setUp(self):
        self.session = EditorSession()
        self.session.load_image(make_gradient_image(100, 80))

    def test_too_small(self):
        """Test rectangles of 5 pixels or less change nothing."""
        self.assertFalse(self.session.crop(10, 10, 5, 50))
        self.assertFalse(self.session.crop(10, 10, 50, 4.4))

        self.assertEqual(self.session.canvas_size, (100, 80))
        self.assertEqual(self.session.history.labels, ["init"])

    def test_nothing_loaded(self):
        """Test cropping an empty session is a no-op."""
        self.assertFalse(EditorSession().crop(0, 0, 50, 50))

    def test_busy_session(self):
        """Test cropping is rejected while segmentation is in flight."""
        self.session.segmentation_in_flight = True

        self.assertFalse(self.session.crop(0, 0, 50, 50))
        self.assertEqual(self.session.canvas_size, (100, 80))


class TestScenario:
    """End-to-end crop scenarios."""

    def test_rotate_flip_crop(self):
        """Should yield a 50x50 canvas with an identity view."""
        session = EditorSession()
        session.load_image(make_gradient_image(200, 100))
        session.rotate()
        session.flip()

        assert session.crop(75, 25, 50, 50)

        assert session.canvas_size == (50, 50)
        assert session.view == ViewTransform.identity()
        assert session.history.labels == ["init", "rotate", "flip", "crop"]

    def test_undo_restores_pre_crop_state(self):
        """Should restore canvas size, transform and background on undo."""
        session = EditorSession()
        session.load_image(make_gradient_image(200, 100))
        session.set_background_color((0, 255, 0, 255))
        session.rotate()
        before = session.compose().tobytes()

        session.crop(75, 25, 50, 50)
        assert session.undo()

        assert session.canvas_size == (200, 100)
        assert session.view.rotation_deg == 90
        assert session.background.color == (0, 255, 0, 255)
        assert session.compose().tobytes() == before

    def test_extract_region_size(self, loaded_session):
        """Should always return exactly w x h."""
        assert extract_region(loaded_session, -10, -10, 20, 30).size == (20, 30)

    def test_normalize_rect(self):
        """Should round to integer pixels."""
        assert normalize_rect(1.6, 2.4, 10.5, 7.49) == (2, 2, 10, 7)
