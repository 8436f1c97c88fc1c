"""
Bagr Disc Photo Pipeline

Crops a disc golf disc photo to the disc silhouette and samples its
dominant color:

    BackgroundSampler -> EdgeDetector -> CropPlanner -> Rasterizer
    ColorSampler (on the crop, or the original when cropping fails)
"""
from .background import sample_background
from .color import sample_dominant_color
from .crop import plan_crop
from .edges import background_threshold, detect_disc_radius, scan_radii
from .pipeline import analyze_image, analyze_photo, analyze_photo_bytes, crop_disc
from .rasterize import encode_data_uri, rasterize_crop
from .types import (
    BackgroundEstimate, ColorRGB, CropRect, DominantColor, PhotoAnalysis
)

__all__ = [
    "BackgroundEstimate",
    "ColorRGB",
    "CropRect",
    "DominantColor",
    "PhotoAnalysis",
    "analyze_image",
    "analyze_photo",
    "analyze_photo_bytes",
    "background_threshold",
    "crop_disc",
    "detect_disc_radius",
    "encode_data_uri",
    "plan_crop",
    "rasterize_crop",
    "sample_background",
    "sample_dominant_color",
    "scan_radii",
]
