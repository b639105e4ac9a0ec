"""
Tests for the adjustment / filter model.

Tests cover:
- Operation list construction and ordering
- Brightness, contrast and saturation pixel results
- Tint restricted to opaque foreground pixels
- Alpha preservation and determinism
"""

import numpy as np
import pytest
from PIL import Image

from CS_Libs.ImageEditingLib.adjustment_filters import (
    KIND_BRIGHTNESS,
    KIND_CONTRAST,
    KIND_HUE_ROTATE,
    KIND_SATURATE,
    KIND_SEPIA,
    KIND_TINT,
    ToneOperation,
    apply_tone_operations,
    build_tone_operations,
)
from CS_Libs.ImageEditingLib.editor_models import AdjustmentState


def solid(color, size=(4, 4)):
    return Image.new("RGBA", size, color)


class TestBuildToneOperations:
    """Test build_tone_operations."""

    def test_neutral_state(self):
        """Should emit the three multipliers, all identities."""
        ops = build_tone_operations(AdjustmentState())

        assert [op.kind for op in ops] == [KIND_BRIGHTNESS, KIND_CONTRAST, KIND_SATURATE]
        assert all(op.is_identity() for op in ops)

    def test_multipliers(self):
        """Should fold exposure, clarity and vibrance into the multipliers."""
        ops = build_tone_operations(AdjustmentState(
            brightness=10, exposure=20, contrast=30, clarity=30, saturation=-50, vibrance=20,
        ))

        assert ops[0].amount == pytest.approx(1.3)
        assert ops[1].amount == pytest.approx(1.4)
        assert ops[2].amount == pytest.approx(0.6)

    def test_multipliers_never_negative(self):
        """Should clamp multipliers at zero."""
        ops = build_tone_operations(AdjustmentState(brightness=-150, contrast=-300))
        assert ops[0].amount == 0.0
        assert ops[1].amount == 0.0

    def test_order_is_stable(self):
        """Should place temperature, hue shift and tint after the multipliers in that order."""
        ops = build_tone_operations(AdjustmentState(
            temperature=40, hue_shift=15, tint=(255, 0, 0, 64)
        ))

        assert [op.kind for op in ops] == [
            KIND_BRIGHTNESS, KIND_CONTRAST, KIND_SATURATE, KIND_SEPIA, KIND_HUE_ROTATE, KIND_TINT,
        ]
        assert ops[3].amount == pytest.approx(0.2)
        assert ops[5].color == (255, 0, 0, 64)

    def test_cool_temperature_is_hue_rotation(self):
        """Should map negative temperature to a hue rotation of temperature / 5 degrees."""
        ops = build_tone_operations(AdjustmentState(temperature=-50))

        assert ops[3].kind == KIND_HUE_ROTATE
        assert ops[3].amount == pytest.approx(-10)

    def test_same_state_same_operations(self):
        """Should be deterministic."""
        adj = AdjustmentState(contrast=20, saturation=-100)
        assert build_tone_operations(adj) == build_tone_operations(adj)


class TestApplyToneOperations:
    """Test apply_tone_operations pixel results."""

    def test_identity_returns_copy(self):
        """Should return equal pixels in a new image."""
        img = solid((10, 20, 30, 200))
        out = apply_tone_operations(img, build_tone_operations(AdjustmentState()))

        assert out is not img
        assert out.tobytes() == img.tobytes()

    def test_brightness_doubles(self):
        """Should scale channels by the brightness multiplier."""
        out = apply_tone_operations(
            solid((50, 60, 70, 255)), build_tone_operations(AdjustmentState(brightness=100))
        )
        assert out.getpixel((0, 0)) == (100, 120, 140, 255)

    def test_brightness_to_black(self):
        """Should produce black at brightness -100."""
        out = apply_tone_operations(
            solid((50, 60, 70, 255)), build_tone_operations(AdjustmentState(brightness=-100))
        )
        assert out.getpixel((0, 0)) == (0, 0, 0, 255)

    def test_contrast_clamps(self):
        """Should clamp stretched values into range."""
        img = Image.new("RGBA", (2, 1))
        img.putpixel((0, 0), (0, 0, 0, 255))
        img.putpixel((1, 0), (255, 255, 255, 255))

        out = apply_tone_operations(img, build_tone_operations(AdjustmentState(contrast=100)))

        assert out.getpixel((0, 0)) == (0, 0, 0, 255)
        assert out.getpixel((1, 0)) == (255, 255, 255, 255)

    def test_full_desaturation_is_gray(self):
        """Should make every pixel neutral gray at saturation -100."""
        img = Image.fromarray(
            np.random.default_rng(3).integers(0, 256, (8, 8, 4), dtype=np.uint8)
        )
        out = np.asarray(apply_tone_operations(
            img, build_tone_operations(AdjustmentState(saturation=-100))
        ))

        rgb = out[..., :3].astype(int)
        assert (rgb.max(axis=-1) - rgb.min(axis=-1)).max() <= 1

    def test_alpha_preserved(self):
        """Should never change the alpha channel."""
        img = Image.fromarray(
            np.random.default_rng(5).integers(0, 256, (6, 6, 4), dtype=np.uint8)
        )
        adj = AdjustmentState(brightness=30, contrast=-20, saturation=40, temperature=60,
                              tint=(0, 100, 150, 64))
        out = apply_tone_operations(img, build_tone_operations(adj))

        assert np.array_equal(np.asarray(out)[..., 3], np.asarray(img)[..., 3])

    def test_tint_only_where_opaque(self):
        """Should leave pixels with zero alpha untouched by the tint."""
        img = Image.new("RGBA", (2, 1))
        img.putpixel((0, 0), (100, 100, 100, 255))
        img.putpixel((1, 0), (100, 100, 100, 0))

        out = apply_tone_operations(img, [ToneOperation(KIND_TINT, color=(200, 0, 0, 255))])

        assert out.getpixel((0, 0)) == (200, 0, 0, 255)
        assert out.getpixel((1, 0)) == (100, 100, 100, 0)

    def test_full_hue_turn_is_near_identity(self):
        """Should return (almost) the original color after a 360 degree rotation."""
        out = apply_tone_operations(
            solid((120, 60, 200, 255)), [ToneOperation(KIND_HUE_ROTATE, 360.0)]
        )
        for got, want in zip(out.getpixel((0, 0)), (120, 60, 200, 255)):
            assert abs(got - want) <= 1

    def test_idempotent(self):
        """Should produce identical bytes for repeated application to the same input."""
        img = Image.fromarray(
            np.random.default_rng(11).integers(0, 256, (10, 10, 4), dtype=np.uint8)
        )
        ops = build_tone_operations(AdjustmentState(contrast=15, saturation=-10,
                                                    tint=(0, 100, 150, 64)))

        assert apply_tone_operations(img, ops).tobytes() == apply_tone_operations(img, ops).tobytes()

    def test_unknown_operation(self):
        """Should raise ValueError for unknown kinds."""
        with pytest.raises(ValueError):
            apply_tone_operations(solid((0, 0, 0, 255)), [ToneOperation("blur", 2.0)])

    def test_requires_image(self):
        """Should raise TypeError for non-images."""
        with pytest.raises(TypeError):
            apply_tone_operations([[0, 0, 0]], [])
