from io import BytesIO
from pathlib import Path
import base64
import numpy as np
from PIL import Image as PILImage
from models.image import Image
from repositories.image_repository import ImageRepository


class ImageService:
    """I/O helpers.  No segmentation logic."""
    def __init__(self):
        self.image_repository = ImageRepository()

    def load(self, path: str | Path) -> Image:
        """Load a single image from disk into an RGBA Image object."""
        return self.image_repository.load(path)

    def decode(self, data: bytes) -> Image:
        return self.image_repository.decode(data)

    def update_pixels(self, image: Image, new_pixels: np.ndarray) -> None:
        """
        Business-level method to replace the current image pixels.
        """
        self.image_repository.set_pixels(image, new_pixels)

    def preserve_original_state(self, image: Image) -> None:
        """
        Preserve the current image state before any recolouring.
        """
        self.image_repository.save_original_pixels(image)

    def apply_pipeline_modification(self, image: Image, new_pixels: np.ndarray) -> None:
        """
        Apply a pipeline modification while preserving original for comparison.
        """
        self.image_repository.update_pixels_preserve_original(image, new_pixels)

    def save(self, image: Image) -> None:
        """
        Business-level method to save the image to its path.
        """
        if image.path is None:
            raise ValueError("Image has no output path")
        self.image_repository.save(image)

    def to_pil_image(self, pixels: np.ndarray) -> PILImage.Image:
        """
        Convert RGBA pixels → PIL Image object.
        Ensures the NumPy array is C-contiguous.
        """
        if not pixels.flags['C_CONTIGUOUS']:
            pixels = np.ascontiguousarray(pixels)
        return PILImage.fromarray(pixels)

    def to_png_bytes(self, pixels: np.ndarray) -> bytes:
        buffer = BytesIO()
        self.to_pil_image(pixels).save(buffer, format="PNG")
        return buffer.getvalue()

    def to_base64(self, pixels: np.ndarray) -> str:
        """PNG data URL for JSON responses."""
        encoded = base64.b64encode(self.to_png_bytes(pixels)).decode('utf-8')
        return f"data:image/png;base64,{encoded}"
