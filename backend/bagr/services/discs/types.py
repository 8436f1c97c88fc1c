"""
Value types passed between the disc photo pipeline stages.
"""
import math
from dataclasses import dataclass
from typing import NamedTuple, Optional

LIGHT_BACKGROUND_MIN = 200


class ColorRGB(NamedTuple):
    """Three 8-bit channels."""
    r: int
    g: int
    b: int

    def distance(self, other: "ColorRGB") -> float:
        """Euclidean distance in RGB space."""
        return math.sqrt(
            (self.r - other.r) ** 2 + (self.g - other.g) ** 2 + (self.b - other.b) ** 2
        )

    @property
    def hex(self) -> str:
        return rgb_to_hex(self)


def rgb_to_hex(rgb) -> str:
    """Convert an RGB triple to a ``#RRGGBB`` string."""
    r, g, b = [int(x) for x in rgb]
    return f"#{r:02X}{g:02X}{b:02X}"


def hex_to_rgb(hex_color: str) -> ColorRGB:
    """Convert a ``#RRGGBB`` string to a ColorRGB."""
    hex_color = hex_color.lstrip('#')
    return ColorRGB(*(int(hex_color[i:i+2], 16) for i in (0, 2, 4)))


@dataclass(frozen=True)
class BackgroundEstimate:
    color: ColorRGB

    @property
    def is_light_background(self) -> bool:
        return all(channel > LIGHT_BACKGROUND_MIN for channel in self.color)


@dataclass(frozen=True)
class CropRect:
    """Square crop, origin at top-left, clamped to the source image."""
    x: int
    y: int
    size: int


@dataclass(frozen=True)
class DominantColor:
    color: ColorRGB
    hex: str

    @classmethod
    def from_rgb(cls, color: ColorRGB) -> "DominantColor":
        return cls(color=color, hex=color.hex)

    @classmethod
    def from_hex(cls, hex_color: str) -> "DominantColor":
        return cls(color=hex_to_rgb(hex_color), hex=hex_color.upper())


@dataclass(frozen=True)
class PhotoAnalysis:
    """
    What the caller stores on a bag slot.

    ``cropped_image_data`` is a JPEG data URI, or the untouched original
    reference when cropping was abandoned (``cropped`` is then False).
    """
    cropped_image_data: str
    dominant_color_hex: str
    cropped: bool
    crop_rect: Optional[CropRect] = None
    disc_radius: Optional[float] = None
