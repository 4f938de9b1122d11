"""
Tests for mask compositing, preview overlay and the click → process flow

Run with:
    pytest tests/test_background_service.py -v
"""

import pytest
import numpy as np
import os
import sys

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from models.color import Color
from models.errors import ShapeMismatch
from models.image import Image
from services.background_service import BackgroundService


def corner_scenario():
    """3x3 grey, black corner at (0, 0), varied alpha"""
    pixels = np.zeros((3, 3, 4), dtype=np.uint8)
    pixels[:, :, :3] = 200
    pixels[0, 0, :3] = 0
    pixels[:, :, 3] = np.arange(9, dtype=np.uint8).reshape(3, 3) * 20 + 10
    return pixels


@pytest.fixture
def service():
    return BackgroundService()


class TestApplyColor:
    """Compositor"""

    def test_recolors_masked_keeps_alpha(self):
        pixels = corner_scenario()
        before = pixels.copy()
        mask = np.ones((3, 3), dtype=np.uint8)
        mask[0, 0] = 0

        out = BackgroundService.apply_color(pixels, mask, Color(255, 0, 0))

        assert out is pixels
        selected = mask == 1
        assert np.all(pixels[selected, :3] == (255, 0, 0))
        np.testing.assert_array_equal(pixels[:, :, 3], before[:, :, 3])
        np.testing.assert_array_equal(pixels[0, 0], before[0, 0])

    def test_unmasked_pixels_untouched(self):
        rng = np.random.default_rng(3)
        pixels = rng.integers(0, 256, size=(6, 5, 4), dtype=np.uint8)
        before = pixels.copy()
        mask = (rng.random((6, 5)) > 0.5).astype(np.uint8)

        BackgroundService.apply_color(pixels, mask, Color(1, 2, 3))

        keep = mask == 0
        np.testing.assert_array_equal(pixels[keep], before[keep])
        np.testing.assert_array_equal(pixels[..., 3], before[..., 3])

    def test_idempotent(self):
        mask = np.eye(4, dtype=np.uint8)
        once = BackgroundService.apply_color(np.full((4, 4, 4), 77, dtype=np.uint8), mask, Color(9, 8, 7))
        twice = BackgroundService.apply_color(once.copy(), mask, Color(9, 8, 7))
        np.testing.assert_array_equal(once, twice)

    def test_flat_mask_accepted(self):
        pixels = np.zeros((2, 3, 4), dtype=np.uint8)
        mask = np.array([0, 0, 0, 0, 0, 1], dtype=np.uint8)

        BackgroundService.apply_color(pixels, mask, Color(10, 20, 30))

        assert tuple(pixels[1, 2, :3]) == (10, 20, 30)
        assert pixels[..., :3].sum() == 60

    def test_shape_mismatch_before_mutation(self):
        pixels = np.zeros((3, 3, 4), dtype=np.uint8)
        with pytest.raises(ShapeMismatch):
            BackgroundService.apply_color(pixels, np.ones(8, dtype=np.uint8), Color(255, 255, 255))
        assert pixels.sum() == 0


class TestPreview:
    """Red half-transparent overlay"""

    def test_overlay_blend(self):
        pixels = corner_scenario()
        mask = np.zeros((3, 3), dtype=np.uint8)
        mask[1, 1] = 1

        out = BackgroundService.preview(pixels, mask)

        # 255·128/255 + 200·127/255 ≈ 227.6, 200·127/255 ≈ 99.6
        assert tuple(out[1, 1, :3]) == (228, 100, 100)
        assert out[1, 1, 3] == pixels[1, 1, 3]
        np.testing.assert_array_equal(out[mask == 0], pixels[mask == 0])

    def test_preview_does_not_modify_input(self):
        pixels = corner_scenario()
        before = pixels.copy()
        BackgroundService.preview(pixels, np.ones((3, 3), dtype=np.uint8))
        np.testing.assert_array_equal(pixels, before)


class TestReplaceWithColor:
    """Process step consumes the click mask"""

    def test_requires_selection(self, service):
        img = Image(pixels=corner_scenario())
        with pytest.raises(LookupError):
            service.replace_with_color(img, Color(255, 0, 0))

    def test_corner_scenario(self, service):
        img = Image(pixels=corner_scenario())
        service.seg_service.select_region(img, (1, 1), 10)

        new_pixels = service.replace_with_color(img, Color(255, 0, 0), blur_radius=0)

        assert tuple(new_pixels[0, 0, :3]) == (0, 0, 0)
        for y in range(3):
            for x in range(3):
                if (x, y) != (0, 0):
                    assert tuple(new_pixels[y, x, :3]) == (255, 0, 0)
        np.testing.assert_array_equal(new_pixels[..., 3], img.pixels[..., 3])
        # image itself is only changed by whoever commits the result
        assert tuple(img.pixels[1, 1, :3]) == (200, 200, 200)

    def test_blur_radius_smooths_mask(self, service):
        """A one-pixel island of background inside the subject is dropped"""
        pixels = np.zeros((7, 7, 4), dtype=np.uint8)
        pixels[..., 3] = 255
        pixels[:, :, :3] = 50           # subject
        pixels[:, 0, :3] = 240          # background column on the left ...
        pixels[3, 1, :3] = 240          # ... with a one-pixel spur
        img = Image(pixels=pixels)
        service.seg_service.select_region(img, (0, 0), 5)

        raw = service.replace_with_color(img, Color(0, 0, 255), blur_radius=0)
        smoothed = service.replace_with_color(img, Color(0, 0, 255), blur_radius=1)

        assert tuple(raw[3, 1, :3]) == (0, 0, 255)
        assert tuple(smoothed[3, 1, :3]) == (240, 240, 240)

    def test_preview_selection(self, service):
        img = Image(pixels=corner_scenario())
        service.seg_service.select_region(img, (1, 1), 10)

        preview = service.preview_selection(img)

        assert tuple(preview[0, 0, :3]) == (0, 0, 0)
        assert tuple(preview[2, 2, :3]) == (228, 100, 100)

    def test_negative_blur_radius(self, service):
        img = Image(pixels=corner_scenario())
        service.seg_service.select_region(img, (1, 1), 10)
        with pytest.raises(ValueError):
            service.replace_with_color(img, Color(255, 0, 0), blur_radius=-1)
