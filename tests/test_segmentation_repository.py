"""
Tests for mask retrieval and box-average mask smoothing

Run with:
    pytest tests/test_segmentation_repository.py -v
"""

import pytest
import numpy as np
import os
import sys

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from models.errors import ShapeMismatch
from repositories.segmentation_repository import SegmentationRepository


def naive_smooth(mask: np.ndarray, radius: int) -> np.ndarray:
    """Direct window loop, used as a reference for the integral-image version"""
    height, width = mask.shape
    out = np.zeros_like(mask)
    for y in range(height):
        for x in range(width):
            window = mask[max(0, y - radius):y + radius + 1, max(0, x - radius):x + radius + 1]
            out[y, x] = 1 if window.sum() / window.size > 0.5 else 0
    return out


class TestSmoothMask:
    """Box average + re-binarize"""

    def test_radius_zero_is_identity_copy(self):
        mask = np.array([[0, 1, 1], [1, 0, 0]], dtype=np.uint8)

        smoothed = SegmentationRepository.smooth_mask(mask, 3, 2, 0)

        np.testing.assert_array_equal(smoothed, mask)
        assert smoothed is not mask

    def test_fills_single_hole(self):
        """5x5 ones with a hole at (2, 2): window mean 8/9 refills it"""
        mask = np.ones((5, 5), dtype=np.uint8)
        mask[2, 2] = 0

        smoothed = SegmentationRepository.smooth_mask(mask, 5, 5, 1)

        assert smoothed[2, 2] == 1
        assert smoothed.sum() == 25

    def test_removes_isolated_speck(self):
        mask = np.zeros((5, 5), dtype=np.uint8)
        mask[2, 2] = 1

        smoothed = SegmentationRepository.smooth_mask(mask, 5, 5, 1)

        assert smoothed.sum() == 0

    def test_tie_resolves_to_zero(self):
        """Two pixels, both windows see one 1 and one 0"""
        mask = np.array([[1, 0]], dtype=np.uint8)

        smoothed = SegmentationRepository.smooth_mask(mask, 2, 1, 1)

        np.testing.assert_array_equal(smoothed, [[0, 0]])

    def test_edges_not_zero_padded(self):
        """A full mask stays full at the borders"""
        mask = np.ones((4, 6), dtype=np.uint8)

        smoothed = SegmentationRepository.smooth_mask(mask, 6, 4, 2)

        assert smoothed.sum() == 24

    def test_uses_original_mask_not_partial_output(self):
        """Diagonal staircase: in-place smoothing would give a different answer"""
        mask = np.tril(np.ones((6, 6), dtype=np.uint8))

        smoothed = SegmentationRepository.smooth_mask(mask, 6, 6, 1)

        np.testing.assert_array_equal(smoothed, naive_smooth(mask, 1))

    @pytest.mark.parametrize("radius", [1, 2, 3, 7])
    def test_matches_window_loop(self, radius):
        rng = np.random.default_rng(radius)
        mask = (rng.random((13, 17)) > 0.45).astype(np.uint8)

        smoothed = SegmentationRepository.smooth_mask(mask, 17, 13, radius)

        np.testing.assert_array_equal(smoothed, naive_smooth(mask, radius))

    def test_flat_mask_keeps_shape(self):
        mask = np.ones(12, dtype=np.uint8)
        mask[5] = 0

        smoothed = SegmentationRepository.smooth_mask(mask, 4, 3, 1)

        assert smoothed.shape == (12,)
        assert smoothed[5] == 1

    def test_input_not_modified(self):
        mask = np.ones((5, 5), dtype=np.uint8)
        mask[2, 2] = 0
        before = mask.copy()
        SegmentationRepository.smooth_mask(mask, 5, 5, 1)
        np.testing.assert_array_equal(mask, before)

    def test_size_mismatch(self):
        with pytest.raises(ShapeMismatch):
            SegmentationRepository.smooth_mask(np.ones((3, 3), dtype=np.uint8), 4, 3, 1)

    def test_negative_radius(self):
        with pytest.raises(ValueError):
            SegmentationRepository.smooth_mask(np.ones((3, 3), dtype=np.uint8), 3, 3, -1)


class TestRetrieveMask:
    """Repository delegates growth to the engine"""

    def test_retrieve_mask(self):
        pixels = np.full((4, 4, 4), 90, dtype=np.uint8)
        pixels[:, 2:, :3] = 10

        mask = SegmentationRepository().retrieve_mask(pixels, (0, 0), 5)

        assert mask[:, :2].sum() == 8
        assert mask[:, 2:].sum() == 0
