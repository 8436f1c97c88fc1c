"""
Dominant color sampling for color-only disc placeholders.

Only the middle of the image is considered: halo plastics put a contrasting
color on the rim that would otherwise win the tally.
"""
from typing import Optional

import cv2
import numpy as np

from bagr.config import config
from bagr.services.imaging import RasterImage
from .types import ColorRGB, DominantColor

SAMPLE_GRID = 100
CENTER_RADIUS_RATIO = 0.30
MIN_ALPHA = 128
MIN_BRIGHTNESS = 30
MAX_BRIGHTNESS = 240
QUANTIZATION_STEP = 32


def downscale_to_grid(image: RasterImage, grid: int = SAMPLE_GRID) -> np.ndarray:
    """Resize RGBA pixels to a grid x grid array."""
    if image.width == grid and image.height == grid:
        return image.pixels
    return cv2.resize(image.pixels.copy(), (grid, grid), interpolation=cv2.INTER_AREA)


def center_disk_mask(grid: int = SAMPLE_GRID, radius_ratio: float = CENTER_RADIUS_RATIO) -> np.ndarray:
    """Boolean (grid, grid) mask of cells within radius_ratio * grid of the center."""
    ys, xs = np.mgrid[0:grid, 0:grid]
    center = grid / 2
    radius = radius_ratio * grid
    return (xs - center) ** 2 + (ys - center) ** 2 <= radius ** 2


def quantize_channels(pixels_rgb: np.ndarray, step: int = QUANTIZATION_STEP) -> np.ndarray:
    """Round each channel to the nearest multiple of step, capped at 255."""
    quantized = np.floor(pixels_rgb / step + 0.5) * step
    return np.minimum(quantized, 255).astype(np.int64)


def most_frequent_color(quantized: np.ndarray) -> ColorRGB:
    """
    Most frequent RGB row; ties go to the row seen first.

    Args:
        quantized: (N, 3) int array in scan order, N > 0
    """
    keys = (quantized[:, 0] << 16) | (quantized[:, 1] << 8) | quantized[:, 2]
    unique_keys, first_seen, counts = np.unique(keys, return_index=True, return_counts=True)

    tied = counts == counts.max()
    winner = int(unique_keys[tied][np.argmin(first_seen[tied])])
    return ColorRGB((winner >> 16) & 0xFF, (winner >> 8) & 0xFF, winner & 0xFF)


def sample_dominant_color(
    image: Optional[RasterImage],
    default_hex: Optional[str] = None
) -> DominantColor:
    """
    Dominant color of the center of an image.

    Pixels outside the center disk, transparent pixels, shadows and glare
    are ignored; the rest are bucketed and the fullest bucket wins.

    Args:
        image: Cropped (or original) photo; None when it could not be read
        default_hex: Color returned when nothing qualifies

    Returns:
        DominantColor, never None
    """
    if default_hex is None:
        default_hex = config.DEFAULT_DISC_COLOR

    if image is None or image.is_empty:
        return DominantColor.from_hex(default_hex)

    grid = downscale_to_grid(image)
    rgb = grid[:, :, :3].astype(np.int64)
    alpha = grid[:, :, 3]
    brightness = rgb.sum(axis=2) / 3

    keep = center_disk_mask(grid.shape[0])
    keep &= alpha >= MIN_ALPHA
    keep &= (brightness >= MIN_BRIGHTNESS) & (brightness <= MAX_BRIGHTNESS)

    pixels = rgb[keep]
    if pixels.shape[0] == 0:
        return DominantColor.from_hex(default_hex)

    return DominantColor.from_rgb(most_frequent_color(quantize_channels(pixels)))
