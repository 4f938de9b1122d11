from __future__ import annotations
from dataclasses import dataclass
import logging
import re

from models.errors import InvalidColorFormat

logger = logging.getLogger(__name__)

_HEX_RE = re.compile(r"^#?([a-f\d]{2})([a-f\d]{2})([a-f\d]{2})$", re.IGNORECASE)


@dataclass(frozen=True)
class Color:
    """
    Value-object for an 8-bit colour. Alpha is carried for sampled pixels
    but never written by the compositor.
    """
    r: int
    g: int
    b: int
    a: int = 255

    @property
    def rgb(self) -> tuple[int, int, int]:
        return self.r, self.g, self.b

    def to_hex(self) -> str:
        return f"#{self.r:02X}{self.g:02X}{self.b:02X}"

    @classmethod
    def from_hex(cls, value: str, strict: bool = False) -> "Color":
        """
        Parse ``#RRGGBB`` (the leading ``#`` is optional, case-insensitive).

        With ``strict=False`` a malformed string yields white and a warning;
        with ``strict=True`` it raises InvalidColorFormat.
        """
        match = _HEX_RE.match(value.strip()) if isinstance(value, str) else None
        if match is None:
            if strict:
                raise InvalidColorFormat(f"Not a #RRGGBB colour: {value!r}")
            logger.warning(f"Invalid colour {value!r}, falling back to white")
            return WHITE
        r, g, b = (int(part, 16) for part in match.groups())
        return cls(r, g, b)

    @classmethod
    def from_pixel(cls, pixel) -> "Color":
        """Build from a 3- or 4-channel pixel (e.g. pixels[y, x])."""
        channels = [int(c) for c in pixel]
        return cls(*channels[:4])


WHITE = Color(255, 255, 255)


def parse_hex_color(value: str) -> Color:
    """Lenient parser used by the outer surfaces: bad input → white."""
    return Color.from_hex(value, strict=False)
