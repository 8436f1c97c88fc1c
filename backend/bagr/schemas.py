"""
Bagr API Schemas
Pydantic models for disc photo analysis and bag sharing request/response validation.
"""
from typing import List, Optional
from pydantic import BaseModel, Field

from bagr.services.bag import Bag
from bagr.services.catalog import Disc


class CropRectModel(BaseModel):
    """Square crop applied to the source photo."""
    x: int = Field(..., ge=0, description="Left edge in source pixels")
    y: int = Field(..., ge=0, description="Top edge in source pixels")
    size: int = Field(..., ge=1, description="Side length in source pixels")


class PhotoAnalysisResponse(BaseModel):
    """Result of the disc photo pipeline."""
    cropped_image_data: str = Field(
        ...,
        description="JPEG data URI of the 400x400 crop, or the original reference if cropping failed"
    )
    dominant_color_hex: str = Field(
        ...,
        pattern=r"^#[0-9A-Fa-f]{6}$",
        description="Dominant disc color in format #RRGGBB"
    )
    cropped: bool = Field(..., description="Whether cropped_image_data holds a new crop")
    crop_rect: Optional[CropRectModel] = Field(None, description="Crop rectangle, when cropped")
    disc_radius: Optional[float] = Field(None, description="Detected disc radius in source pixels")


class PhotoUrlRequest(BaseModel):
    """Remote photo or pasted data URI to analyze."""
    url: str = Field(..., min_length=1, description="http(s) image URL or data: URI")


class ShareRequest(BaseModel):
    bag: Bag
    base_url: str = Field(..., min_length=1, description="Page URL the share link points to")


class ShareResponse(BaseModel):
    url: str
    fragment: str


class ParseShareRequest(BaseModel):
    fragment: str = Field(..., description="Share link or its #bag= fragment")


class CatalogFilterRequest(BaseModel):
    discs: List[Disc]
    search: str = ""
    manufacturer: str = "all"
    disc_type: str = "all"


class CatalogFilterResponse(BaseModel):
    discs: List[Disc]
    manufacturers: List[str]


class HealthResponse(BaseModel):
    """Health check response."""
    ok: bool = Field(True, description="Service health status")
    version: str = Field(..., description="Service version")
    service: str = Field("bagr-disc-photos", description="Service name")


class ErrorResponse(BaseModel):
    """Error response."""
    detail: str = Field(..., description="Error message")
