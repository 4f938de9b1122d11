from pathlib import Path
from typing import Union
import numpy as np
import cv2
from PIL import Image as PILImage
from models.image import Image

# Pillow writers that reject RGBA input
_NO_ALPHA_FORMATS = {"JPEG", "PPM", "EPS"}

class ImageRepository:
    """
    Handles file I/O and pixel updates for Image entities.
    Everything in memory is RGBA, whatever the file held.
    """

    @staticmethod
    def to_rgba(arr: np.ndarray) -> np.ndarray:
        """Normalise a cv2-decoded array (gray / BGR / BGRA) to RGBA uint8."""
        if arr.dtype == np.uint16:
            arr = cv2.convertScaleAbs(arr, alpha=1.0 / 257)
        elif arr.dtype != np.uint8:
            raise ValueError(f"Unsupported image depth: {arr.dtype}")
        if arr.ndim == 2:
            return cv2.cvtColor(arr, cv2.COLOR_GRAY2RGBA)
        if arr.shape[2] == 4:
            return cv2.cvtColor(arr, cv2.COLOR_BGRA2RGBA)
        return cv2.cvtColor(arr, cv2.COLOR_BGR2RGBA)

    @staticmethod
    def load(path: Union[str, Path]) -> Image:
        path = Path(path)
        arr = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
        if arr is None:
            raise FileNotFoundError(f"Image not found or unreadable: {path}")
        return Image(pixels=ImageRepository.to_rgba(arr), path=path)

    @staticmethod
    def decode(data: bytes) -> Image:
        """Decode an in-memory upload (no path yet)."""
        arr = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_UNCHANGED)
        if arr is None:
            raise ValueError("Uploaded data is not a decodable image")
        return Image(pixels=ImageRepository.to_rgba(arr))

    @staticmethod
    def save(image: Image) -> None:
        """
        Write by file extension. PNG keeps the untouched alpha channel;
        formats without alpha (JPEG) get the RGB channels only.
        """
        path = Path(image.path)
        fmt = PILImage.registered_extensions().get(path.suffix.lower())
        if fmt is None:
            raise ValueError(f"Unsupported output format: {path.suffix or path.name}")

        pil_img = PILImage.fromarray(image.pixels)
        if fmt in _NO_ALPHA_FORMATS:
            pil_img = pil_img.convert("RGB")
        pil_img.save(path, format=fmt)

    @staticmethod
    def set_pixels(image: Image, new_pixels: np.ndarray) -> None:
        image.pixels = new_pixels

    @staticmethod
    def save_original_pixels(image: Image) -> None:
        """Save current pixels as original for before/after comparison"""
        if image.original_pixels is None:
            image.original_pixels = image.pixels.copy()

    @staticmethod
    def update_pixels_preserve_original(image: Image, new_pixels: np.ndarray) -> None:
        """Update pixels while preserving original for comparison"""
        if image.original_pixels is None:
            image.original_pixels = image.pixels.copy()
        image.pixels = new_pixels
