"""
Turn a detected disc radius into a square crop rectangle.
"""
import math

from .types import CropRect

FULL_FRAME_RATIO = 0.9
FULL_FRAME_CLAMP = 0.98
RIM_SHRINK = 0.97
MIN_RADIUS_RATIO = 0.4


def plan_crop(disc_radius: float, width: int, height: int) -> CropRect:
    """
    Plan a square crop centered on the image.

    A disc filling the frame is pulled in to 98% of the max radius, every
    crop loses 3% of the rim so no background fringe shows, and the radius
    never drops below 40% of the max radius.

    Args:
        disc_radius: Detected disc radius in pixels
        width, height: Source image dimensions (at least 1)

    Returns:
        CropRect lying fully inside the image
    """
    max_radius = min(width, height) / 2

    if disc_radius > FULL_FRAME_RATIO * max_radius:
        disc_radius = FULL_FRAME_CLAMP * max_radius

    crop_radius = RIM_SHRINK * disc_radius
    final_radius = max(crop_radius, MIN_RADIUS_RATIO * max_radius)

    size = max(1, int(math.ceil(2 * final_radius)))
    size = min(size, width, height)

    x = int(math.floor(width / 2 - size / 2 + 0.5))
    y = int(math.floor(height / 2 - size / 2 + 0.5))
    x = min(max(0, x), width - size)
    y = min(max(0, y), height - size)

    return CropRect(x=x, y=y, size=size)
