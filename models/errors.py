class OutOfBounds(ValueError):
    """Seed coordinate lies outside the pixel buffer."""

    def __init__(self, x: int, y: int, width: int, height: int):
        self.x, self.y = x, y
        self.width, self.height = width, height
        super().__init__(f"Seed ({x}, {y}) outside {width}x{height} image")


class ShapeMismatch(ValueError):
    """Mask size does not match the buffer's pixel count."""

    def __init__(self, mask_size: int, pixel_count: int):
        self.mask_size = mask_size
        self.pixel_count = pixel_count
        super().__init__(
            f"Mask has {mask_size} entries but image has {pixel_count} pixels"
        )


class InvalidColorFormat(ValueError):
    """Colour string is not of the form #RRGGBB."""
