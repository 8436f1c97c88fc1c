"""
Radial edge detection of the disc silhouette.

Rays are cast from the rim of the largest centered circle towards the image
center. Along each ray the first pixel that no longer matches the background
estimate marks the disc edge for that angle.
"""
import math

import numpy as np

from bagr.services.imaging import RasterImage
from .types import BackgroundEstimate

SCAN_ANGLES = 120
INNER_BOUND_RATIO = 0.15
DEFAULT_RADIUS_RATIO = 0.5
KEEP_LARGEST_RATIO = 0.9

# Anti-aliased edges on light backgrounds blend closer to the background.
LIGHT_BACKGROUND_THRESHOLD = 25.0
DARK_BACKGROUND_THRESHOLD = 40.0


def background_threshold(background: BackgroundEstimate) -> float:
    """Distance below which a pixel counts as background."""
    if background.is_light_background:
        return LIGHT_BACKGROUND_THRESHOLD
    return DARK_BACKGROUND_THRESHOLD


def max_scan_radius(width: int, height: int) -> float:
    return min(width, height) / 2


def _ray_radii(max_radius: float) -> np.ndarray:
    """Descending radii from max_radius - 1 down to the inner bound, inclusive."""
    start = max_radius - 1
    inner = INNER_BOUND_RATIO * max_radius
    if start < inner:
        return np.empty(0, dtype=np.float64)
    steps = int(math.floor(start - inner)) + 1
    return start - np.arange(steps, dtype=np.float64)


def scan_radii(image: RasterImage, background: BackgroundEstimate) -> np.ndarray:
    """
    Edge radius for each of the SCAN_ANGLES equally spaced angles.

    Angles with no background-to-disc transition default to half the
    max radius. Samples outside the image never count as disc.

    Returns:
        float array of shape (SCAN_ANGLES,)
    """
    width, height = image.width, image.height
    max_radius = max_scan_radius(width, height)
    default_radius = DEFAULT_RADIUS_RATIO * max_radius

    radii = _ray_radii(max_radius)
    if radii.size == 0:
        return np.full(SCAN_ANGLES, default_radius)

    angles = np.arange(SCAN_ANGLES) * (2 * math.pi / SCAN_ANGLES)
    cx, cy = width / 2, height / 2
    xs = np.floor(cx + np.cos(angles)[:, None] * radii[None, :]).astype(np.int64)
    ys = np.floor(cy + np.sin(angles)[:, None] * radii[None, :]).astype(np.int64)
    inside = (xs >= 0) & (xs < width) & (ys >= 0) & (ys < height)

    samples = image.rgb()[np.clip(ys, 0, height - 1), np.clip(xs, 0, width - 1)]
    distances = np.linalg.norm(
        samples.astype(np.float64) - np.asarray(background.color, dtype=np.float64),
        axis=2
    )
    is_disc = inside & (distances >= background_threshold(background))

    found = is_disc.any(axis=1)
    first_hit = is_disc.argmax(axis=1)
    return np.where(found, radii[first_hit], default_radius)


def aggregate_radii(radii: np.ndarray) -> float:
    """
    Mean of the largest 90% of the per-angle radii.

    Glare, logos and stamps end rays early, rarely late, so the smallest
    radii are dropped.
    """
    if len(radii) == 0:
        return 0.0
    ordered = np.sort(np.asarray(radii, dtype=np.float64))[::-1]
    keep = max(1, int(len(ordered) * KEEP_LARGEST_RATIO))
    return float(ordered[:keep].mean())


def detect_disc_radius(image: RasterImage, background: BackgroundEstimate) -> float:
    """
    Detected disc radius in pixels, measured from the image center.

    Returns 0.0 for an empty image.
    """
    if image.is_empty:
        return 0.0
    return aggregate_radii(scan_radii(image, background))
