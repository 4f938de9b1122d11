#!/usr/bin/env python3
"""
Recolour a photo's background from the command line.

    background-recolor photo.jpg out.png --seed 12 40 --tolerance 25 --color "#FFFFFF"
"""
import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables first
load_dotenv()

from models.color import parse_hex_color
from models.errors import OutOfBounds
from pipeline.background_replacer import (
    DEFAULT_BG_COLOR,
    DEFAULT_BLUR_RADIUS,
    DEFAULT_TOLERANCE,
    output_path_for,
    replace_background,
)
from services.background_service import BackgroundService
from services.image_service import ImageService

logger = logging.getLogger("background-recolor")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Replace a clicked background region with a solid colour")
    ap.add_argument("input", help="source image")
    ap.add_argument("output", nargs="?", default=None,
                    help="destination (default: <input>_recolored.png)")
    ap.add_argument("--seed", nargs=2, type=int, required=True, metavar=("X", "Y"),
                    help="background pixel to grow from, in image pixels")
    ap.add_argument("--tolerance", type=int, default=DEFAULT_TOLERANCE,
                    help="max per-channel difference from the seed colour")
    ap.add_argument("--blur-radius", type=int, default=DEFAULT_BLUR_RADIUS,
                    help="mask smoothing half-width, 0 disables")
    ap.add_argument("--color", default=DEFAULT_BG_COLOR, help="replacement colour #RRGGBB")
    ap.add_argument("--preview", action="store_true",
                    help="write the red detection overlay instead of recolouring")
    ap.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return ap


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    # --- Centralized Logging Configuration ---
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s',
        datefmt='%H:%M:%S'
    )

    if args.tolerance < 0 or args.blur_radius < 0:
        logger.error("Tolerance and blur radius must be >= 0")
        return 2

    image_service = ImageService()
    background_service = BackgroundService()

    try:
        img = image_service.load(args.input)
    except FileNotFoundError as err:
        logger.error(str(err))
        return 1

    seed = (args.seed[0], args.seed[1])
    try:
        if args.preview:
            background_service.seg_service.select_region(img, seed, args.tolerance)
            image_service.update_pixels(img, background_service.preview_selection(img))
        else:
            replace_background(
                img, seed,
                background_service=background_service,
                image_service=image_service,
                tolerance=args.tolerance,
                blur_radius=args.blur_radius,
                color=parse_hex_color(args.color),
            )
    except OutOfBounds as err:
        logger.error(str(err))
        return 2

    img.path = Path(args.output) if args.output else output_path_for(args.input)
    try:
        image_service.save(img)
    except (OSError, ValueError) as err:
        logger.error(f"Could not write {img.path}: {err}")
        return 1
    logger.info(f"Saved → {img.path}")
    return 0


# ─── CLI ────────────────────────────────────────────────────
if __name__ == "__main__":
    sys.exit(main())
