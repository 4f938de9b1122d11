from typing import Dict, Tuple
import logging
import numpy as np
from models.image import Image
from repositories.segmentation_repository import SegmentationRepository

logger = logging.getLogger(__name__)


class SegmentationService:
    """
    Remembers the mask picked by the last click on each image, so the
    processing step recolours exactly what the user saw in the preview.
    """

    def __init__(self) -> None:
        self.repo = SegmentationRepository()
        self._mask_cache: Dict[int, np.ndarray] = {}

    @staticmethod
    def _source_pixels(img: Image) -> np.ndarray:
        # Always sample the unmodified photo, even after a previous recolour.
        return img.original_pixels if img.original_pixels is not None else img.pixels

    def select_region(self, img: Image, seed: Tuple[int, int], tolerance: int) -> np.ndarray:
        """
        Grow the background mask from *seed* and remember it for *img*.
        A failed selection leaves any previous mask in place.
        """
        pixels = self._source_pixels(img)
        x, y = int(seed[0]), int(seed[1])
        logger.info(f"Selecting region at ({x}, {y}), tolerance {tolerance}")

        mask = self.repo.retrieve_mask(pixels, (x, y), tolerance)
        self._mask_cache[id(img)] = mask

        stats = self.mask_stats(mask)
        logger.info(f"Background detection complete: {stats['selected_pixels']} pixels "
                    f"({stats['percentage']}% of the image)")
        return mask

    def get_mask(self, img: Image) -> np.ndarray:
        key = id(img)
        if key not in self._mask_cache:
            raise LookupError("No region selected for this image; click a background pixel first")
        return self._mask_cache[key]

    def has_mask(self, img: Image) -> bool:
        return id(img) in self._mask_cache

    def forget(self, img: Image) -> None:
        self._mask_cache.pop(id(img), None)

    def smooth(self, img: Image, mask: np.ndarray, radius: int) -> np.ndarray:
        return self.repo.smooth_mask(mask, img.width, img.height, radius)

    @staticmethod
    def mask_stats(mask: np.ndarray) -> dict:
        selected = int(np.count_nonzero(mask))
        total = int(mask.size)
        percentage = round(selected / total * 100, 2) if total else 0.0
        return {"selected_pixels": selected, "total_pixels": total, "percentage": percentage}
