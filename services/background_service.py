from typing import Tuple
import logging
import numpy as np

from models.color import Color
from models.errors import ShapeMismatch
from models.image import Image
from services.segmentation_service import SegmentationService

logger = logging.getLogger(__name__)


class BackgroundService:
    """
    Business-level helper for background recolouring.

    • Uses SegmentationService for the mask picked by the user's click.
    • Returns **new** pixel arrays; the caller decides when to commit them
      to the Image, so a preview never touches the real photo.
    """

    _PREVIEW_COLOR: Tuple[int, int, int] = (255, 0, 0)   # red overlay
    _PREVIEW_ALPHA: int = 128                             # half-transparent

    def __init__(self, seg_service: SegmentationService | None = None):
        self.seg_service = seg_service or SegmentationService()

    @staticmethod
    def _as_pixel_mask(pixels: np.ndarray, mask: np.ndarray) -> np.ndarray:
        """Boolean (H, W) view of *mask*; ShapeMismatch if sizes differ."""
        height, width = pixels.shape[:2]
        if mask.size != width * height:
            raise ShapeMismatch(mask.size, width * height)
        return mask.reshape(height, width) == 1

    # --------------------------------------------------------------
    @staticmethod
    def apply_color(pixels: np.ndarray, mask: np.ndarray, color: Color) -> np.ndarray:
        """
        Overwrite R, G, B of every masked pixel with *color*, in place.
        Alpha is never written; unmasked pixels are untouched.
        """
        selected = BackgroundService._as_pixel_mask(pixels, mask)
        pixels[selected, 0] = color.r
        pixels[selected, 1] = color.g
        pixels[selected, 2] = color.b
        logger.info(f"Replaced {int(selected.sum())} pixels with RGB{color.rgb}")
        return pixels

    @classmethod
    def preview(cls, pixels: np.ndarray, mask: np.ndarray) -> np.ndarray:
        """
        Red, half-transparent overlay of the mask drawn over a copy of *pixels*.
        The input array is not modified.
        """
        selected = cls._as_pixel_mask(pixels, mask)
        out = pixels.copy()

        alpha = cls._PREVIEW_ALPHA / 255.0
        overlay = np.array(cls._PREVIEW_COLOR, dtype=np.float32)
        rgb = out[selected, :3].astype(np.float32)
        out[selected, :3] = np.rint(overlay * alpha + rgb * (1.0 - alpha)).astype(np.uint8)
        return out

    # --------------------------------------------------------------
    def preview_selection(self, img: Image) -> np.ndarray:
        mask = self.seg_service.get_mask(img)
        source = img.original_pixels if img.original_pixels is not None else img.pixels
        return self.preview(source, mask)

    def replace_with_color(
            self,
            img: Image,
            color: Color,
            blur_radius: int = 0,
    ) -> np.ndarray:
        """
        Recolour the region selected earlier on *img*.

        • blur_radius 0   →  raw flood-fill mask
        • blur_radius 1‑3 →  jagged edges and specks smoothed away
        """
        mask = self.seg_service.get_mask(img)
        if blur_radius != 0:
            logger.info(f"Smoothing mask with radius {blur_radius}")
            mask = self.seg_service.smooth(img, mask, blur_radius)

        source = img.original_pixels if img.original_pixels is not None else img.pixels
        return self.apply_color(source.copy(), mask, color)
