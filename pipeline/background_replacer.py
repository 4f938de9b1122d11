# pipeline/background_replacer.py
from pathlib import Path
import os
import logging
from typing import Tuple

from dotenv import load_dotenv

from models.color import Color, parse_hex_color
from models.image import Image
from services.background_service import BackgroundService
from services.image_service import ImageService

logger = logging.getLogger(__name__)

# ------------------------------------------------------------------
# env‑vars
load_dotenv()
DEFAULT_TOLERANCE   = int(os.getenv("DEFAULT_TOLERANCE", "30"))
DEFAULT_BLUR_RADIUS = int(os.getenv("DEFAULT_BLUR_RADIUS", "2"))
DEFAULT_BG_COLOR    = os.getenv("DEFAULT_BG_COLOR", "#0066CC")     # ID-photo blue
OUTPUT_EXT          = os.getenv("OUTPUT_IMG_EXT", ".png")

# ------------------------------------------------------------------
def replace_background(
    img: Image,
    seed: Tuple[int, int],
    *,
    background_service: BackgroundService | None = None,
    image_service: ImageService | None = None,
    tolerance: int           = DEFAULT_TOLERANCE,
    blur_radius: int         = DEFAULT_BLUR_RADIUS,
    color: Color | str       = DEFAULT_BG_COLOR,
) -> Image:
    """
    For one Image:
        • grow the background mask from the clicked *seed*
        • smooth it with *blur_radius* (0 = off)
        • paint the masked pixels with *color* (alpha untouched)
        • update pixels in-memory (preserving original)
    Returns the same Image object with updated pixels.
    """
    background_service = background_service or BackgroundService()
    image_service = image_service or ImageService()
    if isinstance(color, str):
        color = parse_hex_color(color)

    logger.info(f"Processing {img.width}x{img.height} image: tolerance {tolerance}, "
                f"blur radius {blur_radius}, background {color.to_hex()}")

    # 1. click step → mask remembered by the segmentation service
    background_service.seg_service.select_region(img, seed, tolerance)

    # 2. process step → consumes that mask
    new_pixels = background_service.replace_with_color(img, color, blur_radius)

    # 3. update pixels in-memory while preserving original
    image_service.apply_pipeline_modification(img, new_pixels)
    return img


def output_path_for(src: Path, out_dir: Path | None = None, ext: str = OUTPUT_EXT) -> Path:
    """<stem>_recolored<ext>, next to the source unless *out_dir* is given."""
    src = Path(src)
    folder = Path(out_dir) if out_dir is not None else src.parent
    return folder / f"{src.stem}_recolored{ext}"
