"""
Render a crop rectangle into the fixed-size slot image and encode it.
"""
import base64
from typing import Optional

import cv2
import numpy as np

from bagr.config import config
from bagr.services.imaging import RasterImage
from .types import CropRect


def rasterize_crop(image: RasterImage, rect: CropRect, output_size: Optional[int] = None) -> RasterImage:
    """
    Scale the crop region to an output_size x output_size opaque image.

    Transparent pixels are composited over black, as a JPEG export would.

    Raises:
        ValueError: if the crop region is empty or output_size is out of range
    """
    if output_size is None:
        output_size = config.OUTPUT_SIZE
    if not config.validate_output_size(output_size):
        raise ValueError(f"Invalid output size: {output_size}")

    region = image.pixels[rect.y:rect.y + rect.size, rect.x:rect.x + rect.size]
    if region.size == 0:
        raise ValueError(f"Empty crop region {rect}")

    rgba = region.astype(np.float32)
    rgb = rgba[:, :, :3] * (rgba[:, :, 3:4] / 255.0)
    rgb = np.clip(np.rint(rgb), 0, 255).astype(np.uint8)

    # INTER_AREA for downscaling, INTER_LINEAR when the crop is smaller than the slot
    interpolation = cv2.INTER_AREA if rect.size > output_size else cv2.INTER_LINEAR
    resized = cv2.resize(rgb, (output_size, output_size), interpolation=interpolation)

    return RasterImage.from_rgb(resized)


def encode_data_uri(image: RasterImage, quality: Optional[int] = None) -> str:
    """
    Encode an image as a base64 JPEG data URI.

    Raises:
        ValueError: for a quality outside 1-100
        RuntimeError: if OpenCV fails to encode
    """
    if quality is None:
        quality = config.JPEG_QUALITY
    if not config.validate_jpeg_quality(quality):
        raise ValueError(f"Invalid JPEG quality: {quality}")

    bgr = image.rgb()[:, :, ::-1].copy()
    success, buffer = cv2.imencode('.jpg', bgr, [cv2.IMWRITE_JPEG_QUALITY, int(quality)])
    if not success:
        raise RuntimeError("Failed to encode crop as JPEG")

    jpeg_b64 = base64.b64encode(buffer.tobytes()).decode('ascii')
    return f"data:image/jpeg;base64,{jpeg_b64}"
