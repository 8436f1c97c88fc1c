"""
Bagr Disc Photo Pipeline
Main orchestration: decode, crop to the disc silhouette, sample its color.
"""
import time
from typing import Optional, Tuple

import httpx

from bagr.config import config
from bagr.services.imaging import (
    PhotoSource, PhotoSourceError, RasterImage, decode_image_bytes, load_photo
)
from bagr.utils.ids import generate_request_id
from bagr.utils.logging import get_logger
from bagr.utils.metrics import get_metrics
from .background import sample_background
from .color import sample_dominant_color
from .crop import plan_crop
from .edges import detect_disc_radius, max_scan_radius
from .rasterize import encode_data_uri, rasterize_crop
from .types import CropRect, PhotoAnalysis


def crop_disc(image: RasterImage, output_size: Optional[int] = None) -> Tuple[RasterImage, CropRect, float]:
    """
    Crop a photo to its disc and scale it to the slot size.

    Returns:
        Tuple of (cropped image, crop rectangle, detected disc radius)

    Raises:
        ValueError: for an empty image
    """
    if image.is_empty:
        raise ValueError("Cannot crop an empty image")

    background = sample_background(image)
    disc_radius = detect_disc_radius(image, background)
    rect = plan_crop(disc_radius, image.width, image.height)
    cropped = rasterize_crop(image, rect, output_size=output_size)
    return cropped, rect, disc_radius


def analyze_image(
    image: Optional[RasterImage],
    reference: str,
    request_id: Optional[str] = None
) -> PhotoAnalysis:
    """
    Run crop and color sampling on an already decoded image.

    Never raises: a failed crop keeps ``reference`` as the photo and the
    color falls back to the configured default.

    Args:
        image: Decoded photo, or None if decoding failed
        reference: Original photo reference (data URI or URL)
        request_id: Request ID for logging
    """
    logger = get_logger()
    metrics = get_metrics()
    request_id = request_id or generate_request_id()

    if image is None or image.is_empty:
        logger.warning("No usable pixels, using original photo and default color", extra={
            "request_id": request_id
        })
        metrics.increment_crop_fallback_count()
        metrics.increment_color_fallback_count()
        return PhotoAnalysis(
            cropped_image_data=reference,
            dominant_color_hex=sample_dominant_color(None).hex,
            cropped=False
        )

    # Step 1: Crop
    crop_start = time.time()
    cropped_image = None
    rect = None
    disc_radius = None
    cropped_data = reference
    try:
        cropped_image, rect, disc_radius = crop_disc(image)
        cropped_data = encode_data_uri(cropped_image)
    except Exception as e:
        logger.warning(f"Crop failed, keeping original photo: {str(e)}", extra={
            "request_id": request_id
        })
        metrics.increment_crop_fallback_count()
        cropped_image = None
        rect = None
        disc_radius = None
        cropped_data = reference
    crop_time = int((time.time() - crop_start) * 1000)

    # Step 2: Color, from the crop when we have one
    color_start = time.time()
    try:
        dominant = sample_dominant_color(cropped_image if cropped_image is not None else image)
    except Exception:
        logger.exception("Color sampling failed, using default", extra={
            "request_id": request_id
        })
        dominant = sample_dominant_color(None)
    if dominant.hex == config.DEFAULT_DISC_COLOR.upper():
        metrics.increment_color_fallback_count()
    color_time = int((time.time() - color_start) * 1000)

    if disc_radius is not None:
        max_radius = max_scan_radius(image.width, image.height)
        metrics.record_disc_radius_ratio(disc_radius / max_radius)
    metrics.record_timing("crop", crop_time)
    metrics.record_timing("color", color_time)

    logger.info("Disc photo analyzed", extra={
        "request_id": request_id,
        "dims": f"{image.width}x{image.height}",
        "disc_radius": round(disc_radius, 2) if disc_radius is not None else None,
        "crop_rect": [rect.x, rect.y, rect.size] if rect else None,
        "color": dominant.hex,
        "ms_crop": crop_time,
        "ms_color": color_time
    })

    return PhotoAnalysis(
        cropped_image_data=cropped_data,
        dominant_color_hex=dominant.hex,
        cropped=cropped_image is not None,
        crop_rect=rect,
        disc_radius=disc_radius
    )


async def analyze_photo(
    source: PhotoSource,
    client: Optional[httpx.AsyncClient] = None
) -> PhotoAnalysis:
    """
    Full pipeline for one photo source.

    Awaits the photo bytes (upload or remote fetch), then crops and samples
    synchronously. Decode and access failures are absorbed.

    Args:
        source: Uploaded bytes, data URI or URL
        client: Optional HTTP client for remote photos
    """
    request_id = generate_request_id()
    logger = get_logger()
    metrics = get_metrics()

    metrics.increment_request_count()
    metrics.increment_source_count(source.kind)

    logger.info("Starting disc photo pipeline", extra={
        "request_id": request_id,
        "source": source.kind
    })

    with metrics.timed("total"):
        image = None
        with metrics.timed("decode"):
            try:
                image = await load_photo(source, client=client)
            except PhotoSourceError as e:
                logger.warning(f"Photo unavailable: {str(e)}", extra={
                    "request_id": request_id,
                    "error_type": type(e).__name__
                })
                metrics.increment_failure_count(type(e).__name__)

        return analyze_image(image, source.reference, request_id=request_id)


def analyze_photo_bytes(data: bytes, content_type: Optional[str] = None) -> PhotoAnalysis:
    """
    Synchronous pipeline for in-memory photo bytes.

    The original reference is the data URI of the bytes.
    """
    source = PhotoSource.from_bytes(data, content_type)
    request_id = generate_request_id()
    try:
        image = decode_image_bytes(data)
    except PhotoSourceError as e:
        get_logger().warning(f"Photo unavailable: {str(e)}", extra={"request_id": request_id})
        image = None
    return analyze_image(image, source.reference, request_id=request_id)
