"""
Test crop planning from a detected disc radius.
"""
import pytest

from bagr.services.discs.crop import plan_crop
from bagr.services.discs.types import CropRect


def test_centered_crop_shrinks_rim():
    """Radius 60 in 200x200: 3% rim shrink gives a ~116px square around the center."""
    rect = plan_crop(60.0, 200, 200)

    assert rect.size == pytest.approx(2 * 0.97 * 60, abs=1)
    assert rect.x + rect.size / 2 == pytest.approx(100, abs=1)
    assert rect.y + rect.size / 2 == pytest.approx(100, abs=1)


def test_full_frame_disc_is_clamped():
    """Anything above 90% of the max radius is treated as 98%."""
    near_edge = plan_crop(95.0, 200, 200)
    at_edge = plan_crop(99.0, 200, 200)

    expected = 2 * 0.97 * 0.98 * 100
    assert near_edge == at_edge
    assert near_edge.size == pytest.approx(expected, abs=1)


def test_radius_just_below_full_frame_is_not_clamped():
    rect = plan_crop(89.0, 200, 200)

    assert rect.size == pytest.approx(2 * 0.97 * 89, abs=1)


@pytest.mark.parametrize("disc_radius", [0.0, 1.0, 12.5, 38.0])
def test_minimum_crop_floor(disc_radius):
    """Tiny detections still crop at least 40% of the max radius."""
    rect = plan_crop(disc_radius, 200, 200)

    assert rect.size >= 2 * 0.4 * 100


@pytest.mark.parametrize("width,height", [
    (1, 1), (1, 500), (500, 1), (2, 2), (3, 7), (199, 200), (640, 480), (481, 1023)
])
@pytest.mark.parametrize("radius_ratio", [0.0, 0.3, 0.5, 0.9, 1.0, 2.0])
def test_crop_always_inside_image(width, height, radius_ratio):
    max_radius = min(width, height) / 2

    rect = plan_crop(radius_ratio * max_radius, width, height)

    assert isinstance(rect, CropRect)
    assert rect.x >= 0 and rect.y >= 0
    assert rect.x + rect.size <= width
    assert rect.y + rect.size <= height
    assert rect.size >= 0.4 * min(width, height)
    assert rect.size <= min(width, height)


def test_single_pixel_crop():
    assert plan_crop(0.25, 1, 1) == CropRect(x=0, y=0, size=1)


def test_crop_is_deterministic():
    assert plan_crop(71.3, 321, 287) == plan_crop(71.3, 321, 287)
