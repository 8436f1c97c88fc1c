"""
Background color estimation from the photo corners.
"""
import math

import numpy as np

from bagr.services.imaging import RasterImage
from .types import BackgroundEstimate, ColorRGB

CORNER_BAND_RATIO = 0.08
CORNER_SAMPLE_STEP = 3


def corner_sample_coordinates(width: int, height: int) -> np.ndarray:
    """
    Coordinates sampled in the four corner bands.

    Returns:
        (N, 2) int array of (x, y), clamped into the image
    """
    band = CORNER_BAND_RATIO * min(width, height)
    offsets = np.arange(0, max(1, math.ceil(band)), CORNER_SAMPLE_STEP)
    dx, dy = np.meshgrid(offsets, offsets, indexing="xy")
    dx = dx.ravel()
    dy = dy.ravel()

    xs = np.concatenate([dx, width - 1 - dx, dx, width - 1 - dx])
    ys = np.concatenate([dy, dy, height - 1 - dy, height - 1 - dy])
    xs = np.clip(xs, 0, width - 1)
    ys = np.clip(ys, 0, height - 1)
    return np.stack([xs, ys], axis=1)


def sample_background(image: RasterImage) -> BackgroundEstimate:
    """
    Estimate the background color as the mean of the corner band samples.

    Args:
        image: Non-empty source image

    Returns:
        BackgroundEstimate with the channel-wise mean color
    """
    coords = corner_sample_coordinates(image.width, image.height)
    samples = image.rgb()[coords[:, 1], coords[:, 0]].astype(np.float64)
    mean = samples.mean(axis=0)
    color = ColorRGB(*(int(math.floor(channel + 0.5)) for channel in mean))
    return BackgroundEstimate(color=color)
