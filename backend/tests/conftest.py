"""
Test configuration and fixtures for Bagr tests.
"""
import io

import cv2
import numpy as np
import pytest
from fastapi.testclient import TestClient
from PIL import Image

# Import the main app
from main import app
from bagr.services.imaging import RasterImage


@pytest.fixture
def test_client():
    """Create test client for the FastAPI app."""
    return TestClient(app)


@pytest.fixture(autouse=True)
def reset_metrics():
    """Reset metrics before each test."""
    from bagr.utils.metrics import reset_metrics
    reset_metrics()


def draw_disc(width=300, height=300, radius=100, background=(20, 20, 20),
              disc=(200, 40, 40), center_color=None, center_radius=0):
    """
    RGB array of a solid disc centered on a uniform background.

    With center_color, an inner disc of center_radius is drawn on top,
    leaving a ring of the disc color (a halo rim).
    """
    img = np.zeros((height, width, 3), dtype=np.uint8)
    img[:, :] = background
    center = (width // 2, height // 2)
    cv2.circle(img, center, radius, disc, -1)
    if center_color is not None:
        cv2.circle(img, center, center_radius, center_color, -1)
    return img


def to_png_bytes(rgb: np.ndarray) -> bytes:
    buf = io.BytesIO()
    Image.fromarray(rgb).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def disc_rgb():
    """Factory for synthetic disc photos as RGB arrays."""
    return draw_disc


@pytest.fixture
def disc_raster():
    """Factory for synthetic disc photos as RasterImages."""
    def _make(**kwargs):
        return RasterImage.from_rgb(draw_disc(**kwargs))
    return _make


@pytest.fixture
def disc_png():
    """Factory for synthetic disc photos as PNG bytes."""
    def _make(**kwargs):
        return to_png_bytes(draw_disc(**kwargs))
    return _make
