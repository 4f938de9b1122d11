# models/region_growing_engine.py
"""
Seeded region growing (flood fill with a flat colour tolerance).

• Target colour is the seed pixel's RGB; alpha never takes part.
• Every candidate is compared against the *seed* colour, not its neighbour.
• Uses an explicit stack, so image size never hits the recursion limit.
"""
from __future__ import annotations
import logging
from typing import List, Sequence, Tuple
import numpy as np

from models.color import Color
from models.errors import OutOfBounds

logger = logging.getLogger(__name__)


class RegionGrowingEngine:

    @staticmethod
    def is_color_similar(color1: Sequence[int], color2: Sequence[int], tolerance: int) -> bool:
        pixel = np.asarray(color1, dtype=np.int16)[:3].reshape(1, 1, 3)
        target = np.asarray(color2, dtype=np.int16)[:3]
        return bool(RegionGrowingEngine._similarity_map(pixel, target, tolerance)[0, 0])

    # --------------------------------------------------
    @staticmethod
    def _similarity_map(pixels: np.ndarray, target: np.ndarray, tolerance: int) -> np.ndarray:
        """
        |dR|, |dG|, |dB| <= tolerance for every pixel at once (alpha ignored).
        Returns bool (H, W).
        """
        diff = np.abs(pixels[:, :, :3].astype(np.int16) - target.astype(np.int16))
        return np.all(diff <= tolerance, axis=2)

    # --------------------------------------------------
    def grow(self, pixels: np.ndarray, seed: Tuple[int, int], tolerance: int) -> np.ndarray:
        """
        Args
        ----
        pixels    : np.ndarray  (H, W, 4)  uint8  RGBA (3 channels also accepted)
        seed      : (x, y) in buffer pixel space
        tolerance : max per-channel absolute difference, >= 0

        Returns
        -------
        mask : np.ndarray  (H, W)  uint8  {0, 1}
        """
        height, width = pixels.shape[:2]
        x0, y0 = int(seed[0]), int(seed[1])
        if not (0 <= x0 < width and 0 <= y0 < height):
            raise OutOfBounds(x0, y0, width, height)
        if tolerance < 0:
            raise ValueError(f"Tolerance must be >= 0, got {tolerance}")

        target = pixels[y0, x0, :3]
        logger.debug(f"Region growing from ({x0}, {y0}), target {Color.from_pixel(target).to_hex()}, "
                     f"tolerance {tolerance}")

        similar = self._similarity_map(pixels, target, tolerance)
        mask = np.zeros((height, width), dtype=np.uint8)

        stack: List[Tuple[int, int]] = [(x0, y0)]
        while stack:
            x, y = stack.pop()
            if x < 0 or x >= width or y < 0 or y >= height:
                continue
            if mask[y, x]:
                continue
            if not similar[y, x]:
                continue

            mask[y, x] = 1
            stack.append((x + 1, y))
            stack.append((x - 1, y))
            stack.append((x, y + 1))
            stack.append((x, y - 1))

        logger.debug(f"Region growing selected {int(mask.sum())} pixels")
        return mask
