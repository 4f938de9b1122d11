# repositories/segmentation_repository.py
from typing import Tuple
import cv2
import numpy as np
from models.errors import ShapeMismatch
from models.region_growing_engine import RegionGrowingEngine

class SegmentationRepository:
    """
    One-click mask retrieval + mask cleanup.

    • Calls the region-growing engine.
    • Post-processes the raw mask with a box average to simplify edges.
    """

    def __init__(self) -> None:
        self.engine = RegionGrowingEngine()

    # ---------- private helpers ----------
    @staticmethod
    def _window_bounds(size: int, radius: int) -> Tuple[np.ndarray, np.ndarray]:
        """Inclusive-start / exclusive-end window edges, clipped to the image."""
        idx = np.arange(size)
        lo = np.clip(idx - radius, 0, size)
        hi = np.clip(idx + radius + 1, 0, size)
        return lo, hi

    # ---------- public API ----------
    def retrieve_mask(self, pixels: np.ndarray, seed: Tuple[int, int], tolerance: int) -> np.ndarray:
        """
        Returns uint8 mask (H, W) with 0/1 values.
        """
        return self.engine.grow(pixels, seed, tolerance)

    @staticmethod
    def smooth_mask(mask: np.ndarray, width: int, height: int, radius: int) -> np.ndarray:
        """
        Box-average the binary mask over a (2r+1)² window and re-binarize at 0.5.

        • Window cells outside the image count toward neither sum nor count.
        • Mean exactly 0.5 → 0.
        • Reads only the input mask; result goes to a new array.
        """
        if radius < 0:
            raise ValueError(f"Blur radius must be >= 0, got {radius}")
        if mask.size != width * height:
            raise ShapeMismatch(mask.size, width * height)
        if radius == 0:
            return mask.copy()

        src = np.ascontiguousarray(mask.reshape(height, width), dtype=np.uint8)
        integral = cv2.integral(src).astype(np.int64)     # (H+1, W+1), exact sums

        x_lo, x_hi = SegmentationRepository._window_bounds(width, radius)
        y_lo, y_hi = SegmentationRepository._window_bounds(height, radius)

        window_sum = (integral[np.ix_(y_hi, x_hi)]
                      - integral[np.ix_(y_lo, x_hi)]
                      - integral[np.ix_(y_hi, x_lo)]
                      + integral[np.ix_(y_lo, x_lo)])
        count = np.outer(y_hi - y_lo, x_hi - x_lo)

        # mean > 0.5  ⇔  2·sum > count, kept in integers
        smoothed = (2 * window_sum > count).astype(np.uint8)
        return smoothed.reshape(mask.shape)
