"""
Bagr v1 API Routes
Disc photo analysis, bag share links and catalog filtering.
"""
from typing import Any, Dict, Optional

from fastapi import APIRouter, File, HTTPException, UploadFile

from bagr.config import config
from bagr.schemas import (
    CatalogFilterRequest, CatalogFilterResponse, CropRectModel, ErrorResponse, ParseShareRequest,
    PhotoAnalysisResponse, PhotoUrlRequest, ShareRequest, ShareResponse
)
from bagr.services.bag import Bag, build_share_url, encode_share_fragment, parse_share_fragment
from bagr.services.catalog import filter_discs, list_manufacturers
from bagr.services.discs import PhotoAnalysis, analyze_photo
from bagr.services.imaging import PhotoSource, max_photo_bytes
from bagr.utils.metrics import get_metrics

router = APIRouter(prefix="/v1", tags=["Discs"])


def _to_response(analysis: PhotoAnalysis) -> PhotoAnalysisResponse:
    rect = analysis.crop_rect
    return PhotoAnalysisResponse(
        cropped_image_data=analysis.cropped_image_data,
        dominant_color_hex=analysis.dominant_color_hex,
        cropped=analysis.cropped,
        crop_rect=CropRectModel(x=rect.x, y=rect.y, size=rect.size) if rect else None,
        disc_radius=analysis.disc_radius
    )


@router.post("/discs/photo", response_model=PhotoAnalysisResponse,
             responses={400: {"model": ErrorResponse}},
             summary="Crop an uploaded disc photo and sample its color")
async def analyze_uploaded_photo(
    file: Optional[UploadFile] = File(None, description="Disc photo")
) -> PhotoAnalysisResponse:
    """
    Crop an uploaded photo to the disc and sample its dominant color.

    Unreadable images are not an error: the original upload comes back as a
    data URI together with the default color.
    """
    if file is None:
        raise HTTPException(status_code=400, detail="No file selected")

    try:
        file_bytes = await file.read()
    except Exception as e:
        raise HTTPException(status_code=400, detail=f"Failed to read file: {str(e)}")

    if len(file_bytes) > max_photo_bytes():
        raise HTTPException(
            status_code=400,
            detail=f"File too large. Maximum size: {config.MAX_FILE_MB}MB"
        )

    source = PhotoSource.from_bytes(file_bytes, file.content_type)
    return _to_response(await analyze_photo(source))


@router.post("/discs/photo-url", response_model=PhotoAnalysisResponse,
             summary="Crop a pasted photo URL and sample its color")
async def analyze_photo_url(request: PhotoUrlRequest) -> PhotoAnalysisResponse:
    """
    Fetch a photo URL (or decode a pasted data URI) and run the pipeline.

    Unreachable or forbidden URLs return the URL itself with the default color.
    """
    source = PhotoSource.from_reference(request.url)
    return _to_response(await analyze_photo(source))


@router.get("/discs/metrics", responses={404: {"model": ErrorResponse}})
def disc_photo_metrics() -> Dict[str, Any]:
    """Pipeline counters and timings."""
    if not config.METRICS_ENABLED:
        raise HTTPException(status_code=404, detail="Metrics disabled")
    return get_metrics().get_summary()


@router.post("/bag/share", response_model=ShareResponse)
def share_bag(request: ShareRequest) -> ShareResponse:
    """Build the share link for a bag."""
    return ShareResponse(
        url=build_share_url(request.base_url, request.bag),
        fragment=encode_share_fragment(request.bag)
    )


@router.post("/bag/parse", response_model=Bag, response_model_by_alias=True,
             responses={422: {"model": ErrorResponse}})
def parse_bag(request: ParseShareRequest) -> Bag:
    """Rebuild a bag from a share link."""
    bag = parse_share_fragment(request.fragment)
    if bag is None:
        raise HTTPException(status_code=422, detail="Share link does not contain a valid bag")
    return bag


@router.post("/catalog/filter", response_model=CatalogFilterResponse)
def filter_catalog(request: CatalogFilterRequest) -> CatalogFilterResponse:
    """Apply the picker search and dropdown filters to a catalog."""
    return CatalogFilterResponse(
        discs=filter_discs(
            request.discs,
            search=request.search,
            manufacturer=request.manufacturer,
            disc_type=request.disc_type
        ),
        manufacturers=list_manufacturers(request.discs)
    )
